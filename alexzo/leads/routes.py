"""
FastAPI routes for lead capture forms
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alexzo.core.database import get_db
from alexzo.dependencies import get_json_body

from .schemas import ContactForm, NewsletterForm, WaitlistForm
from .service import LeadService

router = APIRouter(tags=["Leads"])

Session = Annotated[AsyncSession, Depends(get_db)]
Body = Annotated[Optional[Dict[str, Any]], Depends(get_json_body)]


@router.post("/contact")
async def submit_contact(body: Body, db: Session):
    """Contact form submission"""
    form = ContactForm.parse(body)
    await LeadService(db).submit_contact(form)
    return {"message": "Contact form submitted successfully", "success": True}


@router.post("/newsletter")
async def subscribe_newsletter(body: Body, db: Session):
    """Newsletter subscription; 409 if the email is already subscribed"""
    form = NewsletterForm.parse(body)
    await LeadService(db).subscribe(form)
    return {"message": "Successfully subscribed to newsletter", "success": True}


@router.post("/waitlist")
async def join_waitlist(body: Body, db: Session):
    """Waitlist signup; name, email and product are required"""
    form = WaitlistForm.parse(body)
    await LeadService(db).join_waitlist(form)
    return {"message": "Successfully joined waitlist", "success": True}
