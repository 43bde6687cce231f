"""
Lead Service - Business logic for lead capture

Stores contact form submissions, newsletter subscriptions and product
waitlist sign-ups.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alexzo.core.errors import ConflictError, InternalError

from .models import ContactSubmission, NewsletterSubscription, WaitlistSubmission
from .schemas import ContactForm, NewsletterForm, WaitlistForm

logger = logging.getLogger(__name__)

ALREADY_SUBSCRIBED_MESSAGE = "Email already subscribed"


class LeadService:
    """Business logic for lead capture"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, record, failure_message: str):
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("%s: %s", failure_message, e)
            raise InternalError(failure_message) from e
        await self.db.refresh(record)
        return record

    async def submit_contact(self, form: ContactForm) -> ContactSubmission:
        submission = ContactSubmission(
            name=form.name,
            email=form.email,
            company=form.company,
            subject=form.subject,
            category=form.category,
            message=form.message,
            source="website",
            status="new"
        )
        try:
            await self._save(submission, "Failed to submit contact form")
        except IntegrityError as e:
            raise InternalError("Failed to submit contact form") from e

        logger.info("Contact submission %d received (%s)", submission.id, form.category)
        return submission

    async def subscribe(self, form: NewsletterForm) -> NewsletterSubscription:
        """
        Subscribe an email to the newsletter

        Raises:
            ConflictError: the email is already subscribed
        """
        stmt = select(NewsletterSubscription).where(NewsletterSubscription.email == form.email)
        try:
            existing = (await self.db.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Newsletter lookup failed: %s", e)
            raise InternalError("Failed to subscribe to newsletter") from e
        if existing:
            raise ConflictError(ALREADY_SUBSCRIBED_MESSAGE)

        subscription = NewsletterSubscription(
            email=form.email,
            source="website",
            active=True
        )
        try:
            await self._save(subscription, "Failed to subscribe to newsletter")
        except IntegrityError as e:
            # Lost a race with a concurrent subscription of the same address
            raise ConflictError(ALREADY_SUBSCRIBED_MESSAGE) from e

        logger.info("Newsletter subscription %d created", subscription.id)
        return subscription

    async def join_waitlist(self, form: WaitlistForm) -> WaitlistSubmission:
        submission = WaitlistSubmission(
            name=form.name,
            email=form.email,
            product=form.product,
            company=form.company,
            use_case=form.use_case,
            source="website",
            status="pending"
        )
        try:
            await self._save(submission, "Failed to join waitlist")
        except IntegrityError as e:
            raise InternalError("Failed to join waitlist") from e

        logger.info("Waitlist submission %d for %s", submission.id, form.product)
        return submission
