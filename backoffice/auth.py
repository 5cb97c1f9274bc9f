import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from .config import ADMIN_EMAILS, AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET
from .database import get_db
from .models import Business, BusinessStaff, User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def verify_access_token(token: str) -> dict:
    """
    Verify an access token issued by the auth provider.
    HS256 signature with the shared secret, audience must match.
    """
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received: token length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    try:
        claims = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            audience=AUTH_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"❌ Token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    if not claims.get("sub"):
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return claims


def is_admin(user: User) -> bool:
    return bool(user.email) and user.email.lower() in ADMIN_EMAILS


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the Bearer token, creating it on first sight"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = verify_access_token(credentials.credentials)
    auth_uid = claims["sub"]
    email = (claims.get("email") or "").lower()

    user = db.query(User).filter(User.auth_uid == auth_uid).first()
    if user:
        return user

    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            # Same person signing in through another auth method
            logger.info(f"🔄 Linking user {email} to new auth uid")
            existing_user.auth_uid = auth_uid
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new user: {email}")
    user = User(
        auth_uid=auth_uid,
        email=email or f"{auth_uid}@users.invalid",
        full_name=(claims.get("user_metadata") or {}).get("full_name") or claims.get("name"),
    )
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Restrict a route to platform admins"""
    if not is_admin(user):
        logger.warning(f"⚠️ Non-admin {user.email} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def resolve_business(db: Session, user: User, business_id: Optional[str] = None) -> Optional[Business]:
    """Pick the business a user acts on (see get_current_business)"""
    if is_admin(user):
        if business_id:
            return db.query(Business).filter(Business.id == business_id).first()
        return db.query(Business).order_by(Business.created_at.asc()).first()

    query = (
        db.query(Business)
        .join(BusinessStaff, BusinessStaff.business_id == Business.id)
        .filter(
            BusinessStaff.user_id == user.id,
            BusinessStaff.status == "active",
            Business.status == "active",
        )
    )
    if business_id:
        query = query.filter(Business.id == business_id)
    return query.order_by(BusinessStaff.created_at.asc()).first()


async def get_current_business(
    business_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Business:
    """
    Resolve the business the caller acts on.
    Admins may pick any business with ?business_id=, everyone else gets
    their first active staff membership in an active business.
    """
    business = resolve_business(db, user, business_id)
    if not business:
        logger.warning(f"⚠️ No business access for user {user.email}")
        raise HTTPException(status_code=403, detail="No business access")
    return business
