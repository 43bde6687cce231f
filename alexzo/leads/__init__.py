"""
Lead Capture
Contact form, newsletter and product waitlist submissions
"""

from .models import ContactSubmission, NewsletterSubscription, WaitlistSubmission
from .service import LeadService

__all__ = [
    'ContactSubmission',
    'NewsletterSubscription',
    'WaitlistSubmission',
    'LeadService',
]
