# garden_backend/auth.py
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from passlib.context import CryptContext

from garden_backend import models
from garden_backend.database import get_db

router = APIRouter()
pwd_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Name of the signed cookie written by SessionMiddleware (see main.py)
SESSION_COOKIE = "garden_session"
SESSION_USER_KEY = "user_id"


def _profile(user):
    return {
        "id": user.id,
        "username": user.username,
        "level": user.level,
        "experience": user.experience,
        "coins": user.coins,
    }


@router.post("/register")
def register(
    username: str = Form(...),
    password: str = Form(...),
    db=Depends(get_db)
):
    if db.query(models.User).filter(models.User.username == username).first():
        raise HTTPException(status_code=409, detail="Username already taken")

    user = models.User(username=username, password_hash=pwd_ctx.hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return _profile(user)


@router.post("/login")
def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db=Depends(get_db)
):
    user = db.query(models.User).filter(models.User.username == username).first()
    if not user or not pwd_ctx.verify(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    request.session[SESSION_USER_KEY] = user.id
    return {"message": "login successful"}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"message": "logged out"}


@router.get("/me")
def me(request: Request, db=Depends(get_db)):
    uid = require_login(request)
    user = db.query(models.User).filter(models.User.id == uid).first()
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return _profile(user)


def require_login(request: Request):
    uid = request.session.get(SESSION_USER_KEY)
    if not uid:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return uid
