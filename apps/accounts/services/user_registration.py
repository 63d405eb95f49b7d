"""User registration service."""

import logging
from typing import Optional

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import UserRegistrationError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    phone: Optional[str] = None
) -> User:
    """
    Register a new user.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        first_name: First name shown on group contact cards
        last_name: Last name shown on group contact cards
        phone: Optional phone number in E.164 format

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is already registered
    """
    email = (email or "").strip().lower()

    if User.objects.filter(email=email).exists():
        raise UserRegistrationError("A user with this email already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                phone=phone or None,
            )
    except IntegrityError:
        raise UserRegistrationError("A user with this email already exists")

    logger.info("User %s registered", user.pk)
    return user
