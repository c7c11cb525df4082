"""
Django admin registrations.

The audit trail is shown read-only: entries can be browsed and searched
but never added, edited or deleted from the admin site.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuditLog, Doctor, Patient, Team, TeamConsultant, TreatmentRecord, User, Ward


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'username', 'role', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'username', 'first_name', 'last_name')
    fieldsets = BaseUserAdmin.fieldsets + (('Hospital', {'fields': ('role',)}),)


@admin.register(Ward)
class WardAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'gender_type', 'capacity', 'created_at')
    list_filter = ('gender_type',)
    search_fields = ('name',)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('id', 'code', 'name', 'created_at')
    search_fields = ('code', 'name')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'grade', 'team')
    list_filter = ('grade', 'team')
    search_fields = ('name',)


@admin.register(TeamConsultant)
class TeamConsultantAdmin(admin.ModelAdmin):
    list_display = ('team', 'doctor')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'gender', 'ward', 'team', 'admission_date', 'discharged_at')
    list_filter = ('gender', 'ward', 'team')
    search_fields = ('name',)
    # placement and discharge go through the API so the ward rules and audit trail apply
    readonly_fields = ('ward', 'team', 'admission_date', 'discharged_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.is_discharged:
            return False
        return super().has_change_permission(request, obj)


@admin.register(TreatmentRecord)
class TreatmentRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'treatment_date')
    search_fields = ('patient__name', 'doctor__name', 'description')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'action', 'entity_type', 'entity_id', 'user', 'ip')
    list_filter = ('action', 'entity_type')
    search_fields = ('user__email', 'entity_type')
    readonly_fields = ('action', 'entity_type', 'entity_id', 'user', 'details', 'ip', 'user_agent', 'timestamp')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
