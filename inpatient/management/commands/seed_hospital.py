"""
Management command to load a demo hospital: wards, teams, doctors with
one consultant per team, and a handful of admitted patients.

Safe to run repeatedly; rows are matched by name/code and only missing
ones are created.
"""
from datetime import date

from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import transaction

from inpatient.models import Doctor, Patient, Team, TeamConsultant, Ward

WARDS = [
    ('Male Ward A', Ward.GENDER_MALE, 20),
    ('Male Ward B', Ward.GENDER_MALE, 15),
    ('Female Ward A', Ward.GENDER_FEMALE, 18),
    ('Female Ward B', Ward.GENDER_FEMALE, 12),
    ('Mixed Ward', Ward.GENDER_MIXED, 10),
]

TEAMS = [
    ('CARD', 'Cardiology'),
    ('NEUR', 'Neurology'),
    ('ORTH', 'Orthopedics'),
    ('SURG', 'General Surgery'),
    ('MED', 'Internal Medicine'),
]

# (name, grade, team code); the consultant of each team comes first
DOCTORS = [
    ('Dr. Sarah Johnson', Doctor.GRADE_CONSULTANT, 'CARD'),
    ('Dr. Michael Chen', Doctor.GRADE_JUNIOR1, 'CARD'),
    ('Dr. Emily Davis', Doctor.GRADE_JUNIOR2, 'CARD'),
    ('Dr. Robert Wilson', Doctor.GRADE_CONSULTANT, 'NEUR'),
    ('Dr. Lisa Brown', Doctor.GRADE_JUNIOR1, 'NEUR'),
    ('Dr. James Miller', Doctor.GRADE_CONSULTANT, 'ORTH'),
    ('Dr. Patricia Garcia', Doctor.GRADE_JUNIOR1, 'ORTH'),
    ('Dr. David Lee', Doctor.GRADE_JUNIOR2, 'ORTH'),
    ('Dr. Jennifer Taylor', Doctor.GRADE_CONSULTANT, 'SURG'),
    ('Dr. Christopher Anderson', Doctor.GRADE_JUNIOR1, 'SURG'),
    ('Dr. Maria Rodriguez', Doctor.GRADE_CONSULTANT, 'MED'),
    ('Dr. Kevin Thompson', Doctor.GRADE_JUNIOR1, 'MED'),
    ('Dr. Amanda White', Doctor.GRADE_JUNIOR2, 'MED'),
]

# (name, dob, gender, ward name, team code)
PATIENTS = [
    ('John Smith', date(1985, 3, 15), 'male', 'Male Ward A', 'CARD'),
    ('Robert Johnson', date(1978, 7, 22), 'male', 'Male Ward A', 'ORTH'),
    ('Michael Brown', date(1990, 11, 8), 'male', 'Male Ward B', 'SURG'),
    ('William Davis', date(1965, 5, 30), 'male', 'Male Ward B', 'MED'),
    ('David Wilson', date(1982, 9, 14), 'male', 'Male Ward A', 'NEUR'),
    ('Mary Garcia', date(1975, 12, 3), 'female', 'Female Ward A', 'CARD'),
    ('Jennifer Miller', date(1988, 4, 18), 'female', 'Female Ward A', 'NEUR'),
    ('Linda Anderson', date(1968, 8, 25), 'female', 'Female Ward B', 'ORTH'),
    ('Patricia Taylor', date(1992, 1, 10), 'female', 'Female Ward B', 'SURG'),
    ('Susan Thomas', date(1970, 6, 7), 'female', 'Female Ward A', 'MED'),
    ('James Jackson', date(1980, 2, 28), 'male', 'Mixed Ward', 'CARD'),
    ('Barbara White', date(1973, 10, 12), 'female', 'Mixed Ward', 'NEUR'),
    ('Richard Harris', date(1960, 7, 19), 'male', 'Mixed Ward', 'ORTH'),
    ('Margaret Martin', date(1985, 3, 5), 'female', 'Mixed Ward', 'SURG'),
    ('Charles Thompson', date(1977, 11, 23), 'male', 'Mixed Ward', 'MED'),
]


class Command(BaseCommand):
    help = 'Seed wards, teams, doctors, consultants and patients (idempotent).'

    def add_arguments(self, parser):
        parser.add_argument('--with-users', action='store_true', help='Also run ensure_test_users.')

    @transaction.atomic
    def handle(self, *args, **opts):
        wards = {}
        for name, gender_type, capacity in WARDS:
            wards[name], _ = Ward.objects.get_or_create(
                name=name, defaults={'gender_type': gender_type, 'capacity': capacity},
            )
        self.stdout.write(f'wards: {len(wards)}')

        teams = {}
        for code, name in TEAMS:
            teams[code], _ = Team.objects.get_or_create(code=code, defaults={'name': name})
        self.stdout.write(f'teams: {len(teams)}')

        for name, grade, code in DOCTORS:
            doctor, _ = Doctor.objects.get_or_create(name=name, defaults={'grade': grade, 'team': teams[code]})
            if doctor.is_consultant:
                TeamConsultant.objects.get_or_create(team=teams[code], defaults={'doctor': doctor})
        self.stdout.write(f'doctors: {len(DOCTORS)}')

        created = 0
        for name, dob, gender, ward_name, code in PATIENTS:
            _, was_created = Patient.objects.get_or_create(
                name=name, dob=dob,
                defaults={'gender': gender, 'ward': wards[ward_name], 'team': teams[code]},
            )
            created += int(was_created)
        self.stdout.write(f'patients: {len(PATIENTS)} ({created} new)')

        if opts['with_users']:
            call_command('ensure_test_users', stdout=self.stdout)
        self.stdout.write(self.style.SUCCESS('Hospital data seeded.'))
