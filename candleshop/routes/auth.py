# candleshop/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.users import User
from candleshop.schemas import user as schemas
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.hashing import get_password_hash, verify_password
from candleshop.utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(prefix="/api", tags=["Auth"])

# Register a new customer account
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    # Normalize input
    username = user.username.strip()
    normalized_email = user.email.strip().lower()

    # Check for existing user
    db_user = db.query(User).filter(
        or_(func.lower(User.email) == normalized_email, User.username == username)
    ).first()
    if db_user:
        write_log(
            db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
            ip=client_ip(request), meta={"username": username, "reason": "exists"},
        )
        raise HTTPException(status_code=400, detail="Username or email already registered")

    # Accounts created here are never admins
    data = user.model_dump(exclude={"password", "email", "username"})
    new_user = User(
        username=username, email=normalized_email,
        password_hash=get_password_hash(user.password), is_admin=False, **data,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(
        db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
        ip=client_ip(request), meta={"username": new_user.username},
    )
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.username == payload.username).first()

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"username": payload.username})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.username, "admin": db_user.is_admin})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"username": db_user.username})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/user", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


# Change password; admins may change anyone's, customers only their own
@router.put("/users/{user_id}/password")
def change_password(
    user_id: int,
    payload: schemas.PasswordChange,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = get_password_hash(payload.new_password)
    db.commit()

    write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="users",
              status="SUCCESS", ip=client_ip(request), meta={"target_user_id": user_id})
    return {"message": "Password updated successfully"}
