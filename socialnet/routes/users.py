from fastapi import APIRouter, Depends
from typing import List
from ..schemas.users import UserIn, UserUpdateIn, UserOut, UserDetailOut, MessageOut
from ..crud import (
    list_users,
    get_user,
    create_user,
    update_user,
    delete_user,
    add_friend,
    remove_friend
)
from ..core import get_db

router = APIRouter()


@router.get('', response_model=List[UserDetailOut])
async def all_users(db=Depends(get_db)):
    return await list_users(db)


@router.get('/{user_id}', response_model=UserDetailOut)
async def user_detail(user_id: str, db=Depends(get_db)):
    return await get_user(db, user_id)


@router.post('', response_model=UserOut)
async def create(payload: UserIn, db=Depends(get_db)):
    return await create_user(db, payload)


@router.put('/{user_id}', response_model=UserOut)
async def update(user_id: str, payload: UserUpdateIn, db=Depends(get_db)):
    return await update_user(db, user_id, payload)


@router.delete('/{user_id}', response_model=MessageOut)
async def delete(user_id: str, db=Depends(get_db)):
    # thoughts authored by the user go with it
    await delete_user(db, user_id)
    return {'message': 'User deleted'}


@router.post('/{user_id}/friends/{friend_id}', response_model=UserOut)
async def befriend(user_id: str, friend_id: str, db=Depends(get_db)):
    return await add_friend(db, user_id, friend_id)


@router.delete('/{user_id}/friends/{friend_id}', response_model=UserOut)
async def unfriend(user_id: str, friend_id: str, db=Depends(get_db)):
    return await remove_friend(db, user_id, friend_id)
