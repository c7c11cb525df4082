"""
URL mappings for the hospital administration API.

Paths carry no trailing slash; the browser UI and API clients call
them exactly as listed here.
"""
from django.urls import path, include

from .auth_views import login_view, logout_view, me_view, refresh_view
from .views import audit_logs, dashboard, health, patients, teams, treatments, wards

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    path('api/auth/login', login_view, name='login'),
    path('api/auth/logout', logout_view, name='logout'),
    path('api/auth/refresh', refresh_view, name='token-refresh'),
    path('api/auth/me', me_view, name='me'),

    path('api/dashboard', dashboard.dashboard, name='dashboard'),

    path('api/wards', wards.wards, name='wards'),
    path('api/wards/all', wards.all_wards, name='wards-all'),
    path('api/wards/<int:ward_id>', wards.ward_detail, name='ward-detail'),

    path('api/teams', teams.teams, name='teams'),
    path('api/teams/all', teams.all_teams, name='teams-all'),
    path('api/teams/<int:team_id>', teams.team_detail, name='team-detail'),
    path('api/teams/<int:team_id>/consultant', teams.team_consultant, name='team-consultant'),

    path('api/doctors', teams.doctors, name='doctors'),
    path('api/doctors/consultants', teams.consultants, name='doctors-consultants'),

    path('api/patients', patients.patients, name='patients'),
    path('api/patients/<int:patient_id>', patients.patient_detail, name='patient-detail'),
    path('api/patients/<int:patient_id>/summary', patients.patient_summary, name='patient-summary'),
    path('api/patients/<int:patient_id>/doctors', patients.patient_doctors, name='patient-doctors'),
    path('api/patients/<int:patient_id>/transfer', patients.patient_transfer, name='patient-transfer'),
    path('api/patients/<int:patient_id>/discharge', patients.patient_discharge, name='patient-discharge'),

    path('api/treatments', treatments.treatments, name='treatments'),

    path('api/audit-logs', audit_logs.audit_logs, name='audit-logs'),
]
