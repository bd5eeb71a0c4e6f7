"""Sample records used to populate an empty store."""

SPECIALTIES = [
    'Cardiology',
    'Dermatology',
    'Neurology',
    'Orthopedics',
    'Pediatrics',
    'Psychiatry',
    'General Medicine',
    'Gynecology',
]

SAMPLE_DOCTORS = [
    {'full_name': 'Dr. Sarah Johnson', 'specialty': 'Cardiology', 'availability': True, 'phone': '555-0101'},
    {'full_name': 'Dr. Michael Chen', 'specialty': 'Neurology', 'availability': True, 'phone': '555-0102'},
    {'full_name': 'Dr. Emily Rodriguez', 'specialty': 'Pediatrics', 'availability': False, 'phone': None},
    {'full_name': 'Dr. James Wilson', 'specialty': 'Orthopedics', 'availability': True, 'phone': '555-0104'},
    {'full_name': 'Dr. Aisha Patel', 'specialty': 'General Medicine', 'availability': True, 'phone': None},
]

SAMPLE_PATIENTS = [
    {'full_name': 'John Smith', 'email': 'john.smith@example.com'},
    {'full_name': 'Maria Garcia', 'email': 'maria.garcia@example.com'},
    {'full_name': 'David Lee', 'email': 'david.lee@example.com'},
]
