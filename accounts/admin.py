from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth import get_user_model
from django.contrib import admin

User = get_user_model()


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for the custom User model."""

    list_display = (
        'username', 'email', 'type', 'contact_number', 'assigned_area',
        'active', 'is_staff', 'date_joined'
    )
    list_filter = ('type', 'active', 'is_staff', 'date_joined')
    search_fields = ('username', 'email', 'contact_number', 'first_name', 'last_name')
    ordering = ('-date_joined',)

    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        ('Personal Info', {
            'fields': ('first_name', 'last_name', 'email', 'contact_number')
        }),
        ('Co-op Account', {
            'fields': ('type', 'assigned_area', 'active')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')
        }),
        ('Important Dates', {
            'fields': ('last_login', 'last_login_at', 'date_joined')
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username', 'email', 'password1', 'password2',
                'first_name', 'last_name', 'type', 'contact_number', 'assigned_area'
            ),
        }),
    )

    readonly_fields = ('date_joined', 'last_login', 'last_login_at')
