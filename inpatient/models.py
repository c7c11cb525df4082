"""
Database models for the hospital administration backend.

Wards house patients, teams group doctors, and every patient is placed
in exactly one ward and looked after by exactly one team.  Treatment
records link a patient to the doctor who treated them, and every state
change is written to :class:`AuditLog`.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q
from django.utils import timezone


class User(AbstractUser):
    """Staff account with a role.

    ``admin`` staff run the day-to-day patient workflow; ``superadmin``
    staff may also create wards, teams and doctors and read the audit
    trail.
    """
    ROLE_ADMIN = 'admin'
    ROLE_SUPERADMIN = 'superadmin'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_SUPERADMIN, 'Super Administrator'),
    ]
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_ADMIN)

    @property
    def is_superadmin(self) -> bool:
        return self.role == self.ROLE_SUPERADMIN

    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class WardQuerySet(models.QuerySet):
    def with_occupancy(self):
        return self.annotate(
            current_occupancy=models.Count(
                'patients', filter=Q(patients__discharged_at__isnull=True)
            ),
        )


class Ward(models.Model):
    GENDER_MALE = 'male'
    GENDER_FEMALE = 'female'
    GENDER_MIXED = 'mixed'
    GENDER_CHOICES = [
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
        (GENDER_MIXED, 'Mixed'),
    ]
    name = models.CharField(max_length=255)
    gender_type = models.CharField(max_length=10, choices=GENDER_CHOICES, db_index=True)
    capacity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = WardQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gt=0), name='ward_capacity_positive'),
        ]

    def accepts(self, gender: str) -> bool:
        """Mixed wards take anyone; the others only their own gender."""
        return self.gender_type == self.GENDER_MIXED or self.gender_type == gender

    def occupancy(self, exclude_patient_id: int | None = None) -> int:
        qs = self.patients.filter(discharged_at__isnull=True)
        if exclude_patient_id is not None:
            qs = qs.exclude(id=exclude_patient_id)
        return qs.count()

    def __str__(self) -> str:
        return f"{self.name} ({self.gender_type}, {self.capacity})"


class Team(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class Doctor(models.Model):
    GRADE_CONSULTANT = 'consultant'
    GRADE_JUNIOR1 = 'junior1'
    GRADE_JUNIOR2 = 'junior2'
    GRADE_CHOICES = [
        (GRADE_CONSULTANT, 'Consultant'),
        (GRADE_JUNIOR1, 'Junior (grade 1)'),
        (GRADE_JUNIOR2, 'Junior (grade 2)'),
    ]
    name = models.CharField(max_length=255)
    grade = models.CharField(max_length=16, choices=GRADE_CHOICES, db_index=True)
    team = models.ForeignKey(
        Team, null=True, blank=True, on_delete=models.CASCADE, related_name='doctors'
    )

    @property
    def is_consultant(self) -> bool:
        return self.grade == self.GRADE_CONSULTANT

    def __str__(self) -> str:
        return f"{self.name} ({self.grade})"


class TeamConsultant(models.Model):
    """Links a team to its single consultant."""
    team = models.OneToOneField(Team, on_delete=models.CASCADE, related_name='consultant_link')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='consultant_of')

    def __str__(self) -> str:
        return f"{self.doctor} leads {self.team}"


class Patient(models.Model):
    """An admitted (or formerly admitted) patient.

    ``discharged_at`` is the terminal state: once set the record no
    longer moves between wards and takes no further treatment.
    """
    GENDER_MALE = 'male'
    GENDER_FEMALE = 'female'
    GENDER_CHOICES = [
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
    ]
    name = models.CharField(max_length=255)
    dob = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    ward = models.ForeignKey(
        Ward, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    team = models.ForeignKey(
        Team, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    admission_date = models.DateTimeField(default=timezone.now, db_index=True)
    discharged_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['ward', 'discharged_at'], name='patient_ward_active_idx'),
            models.Index(fields=['team', 'discharged_at'], name='patient_team_active_idx'),
        ]

    @property
    def is_discharged(self) -> bool:
        return self.discharged_at is not None

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class TreatmentRecord(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='treatments')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='treatments')
    description = models.TextField()
    notes = models.TextField(null=True, blank=True)
    treatment_date = models.DateTimeField(default=timezone.now, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Treatment #{self.id} of {self.patient_id} by {self.doctor_id}"


class AuditLog(models.Model):
    """Append-only record of a state-changing action."""
    ACTION_CHOICES = (
        ('admit_patient', 'Admit Patient'),
        ('transfer_patient', 'Transfer Patient'),
        ('discharge_patient', 'Discharge Patient'),
        ('record_treatment', 'Record Treatment'),
        ('create_ward', 'Create Ward'),
        ('create_team', 'Create Team'),
        ('create_doctor', 'Create Doctor'),
        ('assign_consultant', 'Assign Consultant'),
        ('login', 'Login'),
        ('logout', 'Logout'),
    )
    action = models.CharField(max_length=64, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=32)
    entity_id = models.BigIntegerField(null=True, blank=True)
    user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='audit_logs'
    )
    details = models.JSONField(default=dict, blank=True)
    ip = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=512, blank=True, default='')
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'timestamp'], name='audit_action_ts_idx'),
            models.Index(fields=['entity_type', 'entity_id', 'timestamp'], name='audit_entity_ts_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.entity_type}#{self.entity_id}@{self.timestamp:%F %T}"
