"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from user_directory.api.endpoints import users

api_router = APIRouter()

# Registration, login, account management
api_router.include_router(users.router)
