from fastapi import APIRouter, Depends, Request
from pymongo.database import Database

from evote.crud import create_user, login_user
from evote.dependencies import get_db
from evote.errors import ForbiddenError, UnauthorizedError
from evote.rate_limit import api_limit
from evote.schemas import LoginRequest, RegisterRequest
from evote.security import create_access_token

auth_router = APIRouter(prefix="/auth", tags=["Auth"])


@auth_router.post("/register", status_code=201)
@api_limit
def register(request: Request, data: RegisterRequest, db: Database = Depends(get_db)):
    user = create_user(db, data)
    return {"message": "Registered. Await admin approval.", "user_id": user.id}


@auth_router.post("/login")
@api_limit
def login(request: Request, data: LoginRequest, db: Database = Depends(get_db)):
    user, error = login_user(db, data.email, data.password)
    if error == "Account pending approval":
        raise ForbiddenError(error)
    if error:
        raise UnauthorizedError(error)
    token = create_access_token(str(user["_id"]))
    return {
        "access_token": token,
        "token_type": "bearer",
        "role": user["role"],
        "name": user["name"],
        "email": user["email"],
    }
