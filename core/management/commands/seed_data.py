"""
Management command to populate the document store with demo data.
"""
from datetime import timedelta
import random

from django.core.management.base import BaseCommand
from django.utils import timezone

from core.models import Document
from core.services import accounts, resources

CLEARED = ('students', 'teachers', 'classes', 'fees', 'attendance', 'marks', 'dormitories', 'store_items')

TEACHERS = [
    ('T001', 'John', 'Smith', 'Mathematics', 'Bachelor in Mathematics', '2021-01-15'),
    ('T002', 'Jane', 'Doe', 'English', 'Bachelor in English Literature', '2020-06-10'),
    ('T003', 'Michael', 'Johnson', 'Science', 'Bachelor in Science', '2019-08-20'),
    ('T004', 'Sarah', 'Williams', 'History', 'Bachelor in History', '2022-02-01'),
]

CLASSES = [
    # name, code, form, teacher index, capacity
    ('Form 1A', 'F1A', 1, 0, 50),
    ('Form 1B', 'F1B', 1, 1, 48),
    ('Form 2A', 'F2A', 2, 2, 50),
    ('Form 3A', 'F3A', 3, 3, 45),
    ('Form 4A', 'F4A', 4, 0, 42),
]

STUDENTS = [
    # admission no, first, last, birth date, gender, class index, enrolled
    ('SMS001', 'Peter', 'Mwesigwa', '2007-03-15', 'male', 0, '2023-01-10'),
    ('SMS002', 'Amina', 'Nakimuli', '2007-05-22', 'female', 0, '2023-01-10'),
    ('SMS003', 'David', 'Kyaliwajja', '2006-11-08', 'male', 1, '2023-01-10'),
    ('SMS004', 'Grace', 'Ssemwanga', '2006-07-14', 'female', 1, '2023-01-10'),
    ('SMS005', 'Charles', 'Okello', '2005-09-20', 'male', 2, '2022-01-10'),
    ('SMS006', 'Stella', 'Bwebwa', '2005-12-05', 'female', 2, '2022-01-10'),
    ('SMS007', 'Robert', 'Nabwire', '2004-04-10', 'male', 3, '2021-01-10'),
    ('SMS008', 'Rachel', 'Kabugho', '2004-06-18', 'female', 3, '2021-01-10'),
]

DORMITORIES = [
    ('Boys Hostel A', 'boys', 100, 87, 'East Wing'),
    ('Boys Hostel B', 'boys', 80, 65, 'West Wing'),
    ('Girls Hostel A', 'girls', 90, 78, 'South Wing'),
    ('Girls Hostel B', 'girls', 70, 62, 'North Wing'),
]

STORE_ITEMS = [
    ('Exercise Books', 'EB001', 500, 100, 5000, 'Stationery', 'Kampala Supplies Ltd'),
    ('Pens (Box of 50)', 'PEN001', 25, 50, 25000, 'Stationery', 'Kampala Supplies Ltd'),
    ('Whiteboard Markers', 'WBM001', 120, 50, 8000, 'Teaching Materials', 'Office Depot Uganda'),
    ('Chalk (Box of 100)', 'CHALK001', 8, 20, 15000, 'Teaching Materials', 'Office Depot Uganda'),
    ('Computer Paper (Ream)', 'PAPER001', 45, 30, 35000, 'Stationery', 'Tech Solutions'),
    ('Cleaning Supplies Bundle', 'CLEAN001', 12, 10, 50000, 'Maintenance', 'Facility Management Co'),
]

USERS = [
    ('admin@sms.com', 'Admin', 'User', 'admin'),
    ('teacher@sms.com', 'Teacher', 'Account', 'teacher'),
    ('headteacher@sms.com', 'Head', 'Teacher', 'headteacher'),
    ('burser@sms.com', 'Burser', 'Account', 'burser'),
]

SUBJECTS = ['Mathematics', 'English', 'Science', 'History', 'Geography']


class Command(BaseCommand):
    help = 'Clear and populate the school collections with demo data'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='password123', help='password for the demo accounts')
        parser.add_argument('--days', type=int, default=10, help='days of attendance history')
        parser.add_argument('--seed', type=int, default=None, help='random seed for attendance and marks')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])

        deleted, _ = Document.objects.filter(collection__in=CLEARED).delete()
        self.stdout.write(f'Cleared {deleted} records')

        teachers = self.bulk('teachers', [{
            'employee_id': code,
            'first_name': first,
            'last_name': last,
            'email': f'{first}.{last}@example.com'.lower(),
            'subject': subject,
            'qualification': qualification,
            'employment_date': employed,
            'status': 'active',
        } for code, first, last, subject, qualification, employed in TEACHERS])

        classes = self.bulk('classes', [{
            'class_name': name,
            'class_code': code,
            'form_number': form,
            'teacher_id': teachers[t]['id'],
            'capacity': capacity,
        } for name, code, form, t, capacity in CLASSES])

        students = self.bulk('students', [{
            'admission_number': number,
            'first_name': first,
            'last_name': last,
            'email': f'{first}.{last}@student.sms.com'.lower(),
            'date_of_birth': born,
            'gender': gender,
            'class_id': classes[c]['id'],
            'enrollment_date': enrolled,
            'status': 'active',
        } for number, first, last, born, gender, c, enrolled in STUDENTS])

        fees = []
        for i, student in enumerate(students[:3]):
            fees.append({'student_id': student['id'], 'amount': 1500000, 'term': 'Term 1',
                         'academic_year': '2024', 'payment_status': 'paid', 'due_date': '2024-02-15'})
            if i < 2:
                fees.append({'student_id': student['id'], 'amount': 1500000, 'term': 'Term 2',
                             'academic_year': '2024', 'payment_status': 'pending' if i == 0 else 'overdue',
                             'due_date': '2024-05-15'})
        self.bulk('fees', fees)

        today = timezone.localdate()
        attendance = []
        for day in range(options['days']):
            date = (today - timedelta(days=day)).isoformat()
            for student in students:
                roll = rng.random()
                status = 'present' if roll > 0.1 else ('absent' if rng.random() > 0.5 else 'late')
                attendance.append({'student_id': student['id'], 'class_id': student['class_id'],
                                   'attendance_date': date, 'status': status})
        self.bulk('attendance', attendance)

        marks = []
        for student in students:
            for subject in SUBJECTS:
                for exam in ('Mid Term', 'End Term'):
                    marks.append({'student_id': student['id'], 'class_id': student['class_id'],
                                  'subject': subject, 'exam_type': exam,
                                  'marks_obtained': rng.randint(0, 99), 'total_marks': 100,
                                  'term': 'Term 1', 'academic_year': '2024'})
        self.bulk('marks', marks)

        self.bulk('dormitories', [{
            'dormitory_name': name,
            'dormitory_type': kind,
            'capacity': capacity,
            'current_occupancy': occupancy,
            'location': location,
        } for name, kind, capacity, occupancy, location in DORMITORIES])

        self.bulk('store_items', [{
            'item_name': name,
            'item_code': code,
            'quantity_in_stock': qty,
            'reorder_level': reorder,
            'unit_price': price,
            'category': category,
            'supplier': supplier,
        } for name, code, qty, reorder, price, category, supplier in STORE_ITEMS])

        for email, first, last, role in USERS:
            if accounts.find_by_email(email) is not None:
                self.stdout.write(f'skip: {email} (exists)')
                continue
            resources.create_record('users', {
                'email': email,
                'password': options['password'],
                'first_name': first,
                'last_name': last,
                'role': role,
                'email_confirmed': True,
                'status': 'active',
            })
            self.stdout.write(f'ok: {email} ({role})')

        self.stdout.write(self.style.SUCCESS('Demo data ready.'))

    def bulk(self, collection, rows):
        created = resources.bulk_create(collection, rows)
        self.stdout.write(f'Created {len(created)} {collection}')
        return created
