"""Contact listing, search and manual edit routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, col, or_, select

from crmsync.db.engine import get_session
from crmsync.models.contact import Contact, ContactCreate, ContactUpdate
from crmsync.sync.service import create_salesforce_contact

router = APIRouter()


@router.get("/", response_model=List[Contact])
def list_contacts(
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
):
    """List contacts ordered by last name; `search` matches name, email or company."""
    query = select(Contact)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                col(Contact.first_name).ilike(pattern),
                col(Contact.last_name).ilike(pattern),
                col(Contact.email).ilike(pattern),
                col(Contact.company).ilike(pattern),
            )
        )
    return session.exec(
        query.order_by(Contact.last_name, Contact.first_name, Contact.id)
        .offset(offset)
        .limit(limit)
    ).all()


@router.get("/{contact_id}", response_model=Contact)
def get_contact(contact_id: int, session: Session = Depends(get_session)):
    """Fetch a single contact by primary key."""
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.post("/", response_model=Contact, status_code=201)
async def create_contact(
    payload: ContactCreate, session: Session = Depends(get_session)
):
    """Create the contact in Salesforce first, then store it locally."""
    contact = await create_salesforce_contact(session, payload)
    if contact is None:
        raise HTTPException(
            status_code=502, detail="Contact could not be created in Salesforce"
        )
    return contact


@router.patch("/{contact_id}", response_model=Contact)
def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    session: Session = Depends(get_session),
):
    """Manual local edit. The next sync overwrites name, email and phone from Salesforce."""
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    updates = payload.model_dump(exclude_unset=True)
    if any(updates.get(key, "") is None for key in ("first_name", "last_name")):
        raise HTTPException(status_code=422, detail="first_name and last_name cannot be null")
    for key, value in updates.items():
        setattr(contact, key, value)
    session.add(contact)
    session.commit()
    session.refresh(contact)
    return contact


@router.delete("/{contact_id}")
def delete_contact(contact_id: int, session: Session = Depends(get_session)):
    """Delete a local contact. Sync never deletes; this is the only way rows go away."""
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    session.delete(contact)
    session.commit()
    return {"message": "Contact deleted", "id": contact_id}
