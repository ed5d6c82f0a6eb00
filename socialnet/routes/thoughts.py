from fastapi import APIRouter, Depends
from typing import List
from ..schemas.thoughts import ThoughtIn, ThoughtUpdateIn, ThoughtOut, ReactionIn
from ..schemas.users import MessageOut
from ..crud import (
    list_thoughts,
    get_thought,
    create_thought,
    update_thought,
    delete_thought,
    add_reaction,
    remove_reaction
)
from ..core import get_db

router = APIRouter()


@router.get('', response_model=List[ThoughtOut])
async def all_thoughts(db=Depends(get_db)):
    return await list_thoughts(db)


@router.get('/{thought_id}', response_model=ThoughtOut)
async def thought_detail(thought_id: str, db=Depends(get_db)):
    return await get_thought(db, thought_id)


@router.post('', response_model=ThoughtOut)
async def create(payload: ThoughtIn, db=Depends(get_db)):
    # the thought id is appended to its author's list as a second write
    return await create_thought(db, payload)


@router.put('/{thought_id}', response_model=ThoughtOut)
async def update(thought_id: str, payload: ThoughtUpdateIn, db=Depends(get_db)):
    return await update_thought(db, thought_id, payload)


@router.delete('/{thought_id}', response_model=MessageOut)
async def delete(thought_id: str, db=Depends(get_db)):
    await delete_thought(db, thought_id)
    return {'message': 'Thought deleted'}


@router.post('/{thought_id}/reactions', response_model=ThoughtOut)
async def react(thought_id: str, payload: ReactionIn, db=Depends(get_db)):
    return await add_reaction(db, thought_id, payload)


@router.delete('/{thought_id}/reactions/{reaction_id}', response_model=ThoughtOut)
async def unreact(thought_id: str, reaction_id: str, db=Depends(get_db)):
    return await remove_reaction(db, thought_id, reaction_id)
