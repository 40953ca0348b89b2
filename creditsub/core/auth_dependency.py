from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session
from creditsub.core.security import decode_access_token
from creditsub.db.session import SessionLocal
from creditsub.db.models.user import User
from creditsub.services.stripe_service import ChargeGateway
from creditsub.services.subscription_service import SubscriptionService
from creditsub.services.renewal_service import RenewalScheduler

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme)):
    """Get current user email from JWT token."""
    try:
        payload = decode_access_token(token)
        email: str = payload.get("sub")

        if email is None:
            raise HTTPException(status_code=401, detail="Invalid token")

        return email

    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user_obj(
    email: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Get current User object from JWT token."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(
            status_code=404,
            detail="User not found"
        )
    return user


def get_gateway(request: Request) -> ChargeGateway:
    """Charge gateway built at startup."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=503, detail="Payment gateway not configured")
    return gateway


def get_subscription_service(request: Request) -> SubscriptionService:
    """Lifecycle service for routes that do not talk to the gateway."""
    return SubscriptionService(getattr(request.app.state, "gateway", None))


def get_renewal_scheduler(request: Request) -> RenewalScheduler:
    scheduler = getattr(request.app.state, "renewal_scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Renewal scheduler not configured")
    return scheduler
