# backend/routes/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import func

from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user
from models import users as models
from models.customer import Customer
from schemas import user as schemas
from database import get_db

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)

# Register a website shopper together with their customer record
@router.post("/register", response_model=schemas.UserResponse)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    # Normalize email input
    normalized_email = user.email.strip().lower()

    # Check for existing user
    db_user = db.query(models.User).filter(func.lower(models.User.email) == normalized_email).first()
    if db_user:
        logger.warning("Registration rejected, email exists: %s", normalized_email)
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = models.User(
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role="USER",
        name=user.name,
        mobile=user.mobile,
    )
    db.add(new_user)
    db.flush()

    # A customer record with this email belongs to whoever created it and is
    # never claimed by a self-registered account
    existing = db.query(Customer).filter(func.lower(Customer.email) == normalized_email).first()
    if existing:
        logger.warning(
            "Registered %s without a website customer, email held by customer %s", normalized_email, existing.id
        )
    else:
        db.add(Customer(
            name=user.name,
            email=normalized_email,
            mobile=user.mobile,
            customer_type="BTC",
            customer_mode="ONLINE",
            user_id=new_user.id,
            is_website_customer=True,
        ))
    db.commit()
    db.refresh(new_user)

    logger.info("User registered: %s", new_user.email)
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(models.User).filter(models.User.email == payload.email.strip().lower()).first()

    # Validate credentials
    if not db_user or not db_user.is_active or not verify_password(payload.password, db_user.password_hash):
        logger.warning("Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(
        data={"sub": db_user.email, "role": db_user.role, "sub_role": db_user.sub_role}
    )
    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
