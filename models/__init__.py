from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .student import Student
from .tutor import Tutor
from .tutor_shift import TutorShift
from .booking import Booking
from .student_ticket import StudentTicket
from .lesson_report import LessonReport
from .payment_transaction import PaymentTransaction
