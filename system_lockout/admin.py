from django.contrib import admin
from .models import SystemSchedule, SystemTracking


@admin.register(SystemSchedule)
class SystemScheduleAdmin(admin.ModelAdmin):
    list_display = [
        'system_date', 'is_locked', 'admin_action', 'price_change_status',
        'lockout_time', 'admin_user'
    ]
    list_filter = ['is_locked', 'admin_action', 'price_change_status']
    raw_id_fields = ['admin_user']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'system_date'


@admin.register(SystemTracking)
class SystemTrackingAdmin(admin.ModelAdmin):
    list_display = ['id', 'action', 'status', 'scheduled_at', 'executed_at', 'description']
    list_filter = ['status', 'action']
    search_fields = ['description']
    readonly_fields = ['executed_at', 'created_at', 'updated_at']
    date_hierarchy = 'scheduled_at'
