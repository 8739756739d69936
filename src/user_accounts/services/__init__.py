from user_accounts.services.users import (
    CreateUserParams,
    DeleteUserParams,
    UpdateUserParams,
    UserService,
)

__all__ = ["CreateUserParams", "DeleteUserParams", "UpdateUserParams", "UserService"]
