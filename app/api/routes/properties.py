from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import get_db
from app.core.auth import get_current_user, User
from app.core.audit import log_audit
from app.core.errors import NotFound
from app.models.property import Property
from app.services.authorization import Relation, authorize
from app.services.store import commit

from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyOut,
)

router = APIRouter(prefix="/properties", tags=["properties"])


def apply_property_filters(q, available: Optional[bool], search: Optional[str]):
    if available is not None:
        q = q.filter(Property.is_available.is_(available))

    # basic search: name/address/city/state/zip
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            Property.name.ilike(like)
            | Property.address.ilike(like)
            | Property.city.ilike(like)
            | Property.state.ilike(like)
            | Property.zip.ilike(like)
        )

    return q


@router.get("", response_model=List[PropertyOut])
def list_properties(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    available: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="search by name/address/city/state/zip"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """
    Properties owned by the current user. Admins see every property.
    """
    q = db.query(Property)
    if not current_user.is_admin:
        q = q.filter(Property.landlord_id == current_user.id)

    q = apply_property_filters(q, available, search)
    return q.order_by(Property.id.desc()).offset(offset).limit(limit).all()


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(
    property_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = db.query(Property).filter(Property.id == property_id).first()
    if not prop:
        raise NotFound("Property not found")
    return prop


@router.post("", response_model=PropertyOut, status_code=201)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a listing owned by the current user. New listings start available
    and pending review.
    """
    prop = Property(**payload.model_dump(), landlord_id=current_user.id, is_available=True)
    db.add(prop)
    db.flush()
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="property",
        entity_id=str(prop.id),
        status=prop.approval_status,
        property_id=prop.id,
        description=f"Property listed: {prop.name}",
    )
    commit(db)
    db.refresh(prop)
    return prop


@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = db.query(Property).filter(Property.id == property_id).first()
    if not prop:
        raise NotFound("Property not found")
    authorize(current_user, prop, Relation.LANDLORD, "Only the property owner can edit this listing")

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for k, v in data.items():
        setattr(prop, k, v)

    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="property",
        entity_id=str(prop.id),
        status=prop.approval_status,
        property_id=prop.id,
        description=f"Updated fields: {', '.join(sorted(data)) or 'none'}",
    )
    commit(db)
    db.refresh(prop)
    return prop
