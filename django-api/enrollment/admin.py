from django.contrib import admin

from enrollment.models import Course, DiscountCode, ParentAccount, Registration


class RegistrationInline(admin.TabularInline):
    model = Registration
    extra = 0
    fields = ["confirmation_number", "child_first_name", "child_last_name", "payment_status"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(ParentAccount)
class ParentAccountAdmin(admin.ModelAdmin):
    list_display = ["email", "first_name", "last_name", "phone", "created_at"]
    search_fields = ["email", "first_name", "last_name"]
    inlines = [RegistrationInline]


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ["title", "start_date", "capacity", "min_age", "max_age", "price"]
    search_fields = ["title"]
    inlines = [RegistrationInline]


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "discount_percentage",
        "is_active",
        "start_date",
        "end_date",
        "current_uses",
        "max_uses",
    ]
    list_filter = ["is_active"]
    search_fields = ["code"]
    readonly_fields = ["current_uses"]


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = [
        "confirmation_number",
        "course",
        "parent",
        "child_first_name",
        "child_last_name",
        "payment_status",
        "amount_paid",
        "created_at",
    ]
    list_filter = ["payment_status", "course"]
    search_fields = ["confirmation_number", "parent__email", "child_last_name"]
    readonly_fields = ["confirmation_number", "discount_code", "created_at", "updated_at"]
