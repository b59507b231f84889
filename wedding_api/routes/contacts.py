"""
Contact routes.
Phone numbers and bank accounts of the couple and their parents.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select, case
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from wedding_api.database import get_db, with_query_timeout
from wedding_api.models import Contact
from wedding_api.routes.guestbook import set_no_cache_headers
from wedding_api.schemas import ApiResponse, ContactCreate, ContactResponse, ContactUpdate
from wedding_api.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()

SIDE_ORDER = case((Contact.side == "groom", 1), else_=2)

RELATIONSHIP_ORDER = case(
    (Contact.relationship == "person", 1),
    (Contact.relationship == "father", 2),
    (Contact.relationship == "mother", 3),
    else_=4,
)


@router.get("/contacts", response_model=ApiResponse, response_model_exclude_unset=True)
async def get_contacts(response: Response, db: AsyncSession = Depends(get_db)):
    """Get all contacts, groom side first; the person first, then father, mother and the rest."""
    try:
        result = await with_query_timeout(
            db.execute(
                select(Contact).order_by(SIDE_ORDER, RELATIONSHIP_ORDER, Contact.id)
            )
        )
        contacts = result.scalars().all()
    except Exception as e:
        logger.error(f"Error fetching contacts: {type(e).__name__}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch contacts"
        )

    set_no_cache_headers(response)
    return ApiResponse(success=True, data=[ContactResponse.model_validate(c) for c in contacts])


@router.post("/contacts", response_model=ApiResponse, response_model_exclude_unset=True)
@router.post("/admin/contacts", response_model=ApiResponse, response_model_exclude_unset=True)
async def create_contact(
    payload: ContactCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Create a contact. Requires an admin session."""
    try:
        contact = Contact(**payload.model_dump())
        db.add(contact)
        await db.commit()
        await db.refresh(contact)
        logger.info(f"Contact created: ID {contact.id} ({contact.side}/{contact.relationship})")
        return ApiResponse(success=True, data=ContactResponse.model_validate(contact))
    except Exception as e:
        logger.error(f"Error creating contact: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create contact"
        )


async def _get_contact(db: AsyncSession, contact_id: int) -> Contact:
    result = await db.execute(select(Contact).where(Contact.id == contact_id))
    contact = result.scalar_one_or_none()
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


@router.put("/admin/contacts/{contact_id}", response_model=ApiResponse, response_model_exclude_unset=True)
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Replace every field of a contact."""
    contact = await _get_contact(db, contact_id)
    try:
        for key, value in payload.model_dump().items():
            setattr(contact, key, value)
        await db.commit()
        await db.refresh(contact)
        logger.info(f"Contact updated: ID {contact_id}")
        return ApiResponse(success=True, data=ContactResponse.model_validate(contact))
    except Exception as e:
        logger.error(f"Error updating contact {contact_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update contact"
        )


@router.delete("/admin/contacts/{contact_id}", response_model=ApiResponse, response_model_exclude_unset=True)
async def delete_contact(
    contact_id: int,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Delete a contact. Contacts are not soft-deleted."""
    contact = await _get_contact(db, contact_id)
    await db.delete(contact)
    await db.commit()
    logger.info(f"Contact deleted: ID {contact_id}")
    return ApiResponse(success=True)
