from typing import Annotated

from fastapi import APIRouter, Depends, status, HTTPException

from app.api.v1.repositories import UserRepository, get_user_repository
from app.api.v1.schemas import UserCreate, UserUpdate, UserFilter, get_user_filter
from app.core.schemas import ApiResponse

prefix = "/users"
router = APIRouter(prefix=prefix)


@router.get("", response_model=ApiResponse)
async def list_users(
        filters: Annotated[UserFilter, Depends(get_user_filter)],
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Paginated list of active users, including roles."""
    page = await user_repository.list_all_users(filters)
    return ApiResponse(status_code=status.HTTP_200_OK, data=page)


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
        user_in: UserCreate,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Create a user."""
    user = await user_repository.create(user_in)
    return ApiResponse(status_code=status.HTTP_201_CREATED, detail="User created", data=user)


@router.get("/{user_id}", response_model=ApiResponse)
async def read_user(
        user_id: int,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Get a user by id, including roles."""
    user = await user_repository.find_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return ApiResponse(status_code=status.HTTP_200_OK, data=user)


@router.put("/{user_id}", response_model=ApiResponse)
async def update_user(
        user_id: int,
        user_in: UserUpdate,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Update name, email and password hash of a user."""
    updated = await user_repository.update(user_id, user_in)
    return ApiResponse(status_code=status.HTTP_200_OK, data=updated)


@router.delete("/{user_id}", response_model=ApiResponse)
async def delete_user(
        user_id: int,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Soft delete a user."""
    await user_repository.delete(user_id)
    return ApiResponse(status_code=status.HTTP_200_OK, detail="User deleted")


@router.get("/{user_id}/roles", response_model=ApiResponse)
async def read_user_roles(
        user_id: int,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Roles currently assigned to a user."""
    roles = await user_repository.get_user_roles(user_id)
    return ApiResponse(status_code=status.HTTP_200_OK, data=roles)


@router.put("/{user_id}/roles/{role_name}", response_model=ApiResponse)
async def assign_role(
        user_id: int,
        role_name: str,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Assign a role to a user. Assigning it twice is harmless."""
    await user_repository.assign_role(user_id, role_name)
    return ApiResponse(status_code=status.HTTP_200_OK, detail=f"Role '{role_name}' assigned")


@router.delete("/{user_id}/roles/{role_name}", response_model=ApiResponse)
async def remove_role(
        user_id: int,
        role_name: str,
        user_repository: Annotated[UserRepository, Depends(get_user_repository)]
):
    """Remove a role from a user. Removing a role the user lacks is harmless."""
    await user_repository.remove_role(user_id, role_name)
    return ApiResponse(status_code=status.HTTP_200_OK, detail=f"Role '{role_name}' removed")
