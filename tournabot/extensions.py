"""Flask extensions for the application."""
from flask_mail import Mail

mail = Mail()
