from .health import health_bp
from .auth import auth_bp
from .students import students_bp
from .tutor import tutor_bp
from .bookings import bookings_bp
from .tickets import tickets_bp
from .payments import payments_bp
from .stripe_webhook import webhook_bp
from .audit_logs import audit_bp
