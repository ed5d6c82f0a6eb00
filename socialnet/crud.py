import logging
from datetime import datetime, timezone
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from .core import CROSS_WRITE_FAILURES
from .errors import InvalidRequestError, NotFoundError

logger = logging.getLogger('socialnet')


def to_object_id(value: str, entity: str) -> ObjectId:
    # malformed ids resolve to nothing, same as well-formed ids that are absent
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(entity)


def _maybe_object_id(value: str):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _expose(doc: dict) -> dict:
    doc['id'] = doc['_id']
    return doc


def _now():
    return datetime.now(timezone.utc)


async def _second_write(operation: str, write):
    """Await the dependent write of a two-step operation; the first write stays committed."""
    try:
        return await write
    except PyMongoError as e:
        CROSS_WRITE_FAILURES.labels(operation=operation).inc()
        logger.error({'msg': 'cross_write_failed', 'operation': operation, 'error': str(e)})
        raise


async def _find_by_ids(collection, ids) -> dict:
    if not ids:
        return {}
    docs = await collection.find({'_id': {'$in': list(ids)}}).to_list(length=None)
    return {doc['_id']: _expose(doc) for doc in docs}


async def _populate(db, users: list) -> list:
    # dangling references are dropped, stored order is kept
    thought_ids = {tid for u in users for tid in u.get('thoughts', [])}
    friend_ids = {fid for u in users for fid in u.get('friends', [])}
    thoughts = await _find_by_ids(db.thoughts, thought_ids)
    friends = await _find_by_ids(db.users, friend_ids)
    for user in users:
        _expose(user)
        user['thoughts'] = [thoughts[t] for t in user.get('thoughts', []) if t in thoughts]
        user['friends'] = [friends[f] for f in user.get('friends', []) if f in friends]
    return users

# users

async def list_users(db):
    users = await db.users.find().to_list(length=None)
    return await _populate(db, users)

async def get_user(db, user_id: str):
    user = await db.users.find_one({'_id': to_object_id(user_id, 'User')})
    if not user:
        raise NotFoundError('User')
    populated = await _populate(db, [user])
    return populated[0]

async def create_user(db, payload):
    doc = {
        'username': payload.username,
        'email': payload.email,
        'thoughts': [],
        'friends': [],
    }
    result = await db.users.insert_one(doc)
    doc['_id'] = result.inserted_id
    logger.info({'msg': 'user_created', 'user_id': str(doc['_id'])})
    return _expose(doc)

async def update_user(db, user_id: str, payload):
    oid = to_object_id(user_id, 'User')
    fields = payload.model_dump(exclude_none=True)
    if fields:
        user = await db.users.find_one_and_update(
            {'_id': oid}, {'$set': fields}, return_document=ReturnDocument.AFTER
        )
    else:
        user = await db.users.find_one({'_id': oid})
    if not user:
        raise NotFoundError('User')
    return _expose(user)

async def delete_user(db, user_id: str):
    """Remove a user, then the thoughts it authored, then its entries in other friend lists."""
    user = await db.users.find_one_and_delete({'_id': to_object_id(user_id, 'User')})
    if not user:
        raise NotFoundError('User')
    removed = await _second_write(
        'delete_user', db.thoughts.delete_many({'username': user['username']})
    )
    unfriended = await _second_write(
        'delete_user', db.users.update_many({'friends': user['_id']}, {'$pull': {'friends': user['_id']}})
    )
    logger.info({
        'msg': 'user_cascade',
        'user_id': str(user['_id']),
        'thoughts_deleted': removed.deleted_count,
        'friend_lists_updated': unfriended.modified_count,
    })
    return _expose(user)

# friendships

async def add_friend(db, user_id: str, friend_id: str):
    user_oid = to_object_id(user_id, 'User')
    if not await db.users.find_one({'_id': user_oid}, {'_id': 1}):
        raise NotFoundError('User')
    friend_oid = to_object_id(friend_id, 'Friend')
    if not await db.users.find_one({'_id': friend_oid}, {'_id': 1}):
        raise NotFoundError('Friend')
    if user_oid == friend_oid:
        raise InvalidRequestError('A user cannot befriend themselves')
    user = await db.users.find_one_and_update(
        {'_id': user_oid}, {'$addToSet': {'friends': friend_oid}}, return_document=ReturnDocument.AFTER
    )
    if not user:
        raise NotFoundError('User')
    friend = await _second_write(
        'add_friend',
        db.users.find_one_and_update({'_id': friend_oid}, {'$addToSet': {'friends': user_oid}}),
    )
    if not friend:
        # friend vanished between the existence check and the write
        raise NotFoundError('Friend')
    return _expose(user)

async def remove_friend(db, user_id: str, friend_id: str):
    # removing a friendship that does not exist is a no-op
    user_oid = to_object_id(user_id, 'User')
    friend_oid = _maybe_object_id(friend_id)
    if friend_oid:
        user = await db.users.find_one_and_update(
            {'_id': user_oid}, {'$pull': {'friends': friend_oid}}, return_document=ReturnDocument.AFTER
        )
    else:
        user = await db.users.find_one({'_id': user_oid})
    if not user:
        raise NotFoundError('User')
    if friend_oid:
        await _second_write(
            'remove_friend',
            db.users.update_one({'_id': friend_oid}, {'$pull': {'friends': user_oid}}),
        )
    return _expose(user)

# thoughts

async def list_thoughts(db):
    thoughts = await db.thoughts.find().to_list(length=None)
    return [_expose(t) for t in thoughts]

async def get_thought(db, thought_id: str):
    thought = await db.thoughts.find_one({'_id': to_object_id(thought_id, 'Thought')})
    if not thought:
        raise NotFoundError('Thought')
    return _expose(thought)

async def create_thought(db, payload):
    doc = {
        'thoughtText': payload.thoughtText,
        'username': payload.username,
        'createdAt': _now(),
        'reactions': [],
    }
    inserted = await db.thoughts.insert_one(doc)
    doc['_id'] = inserted.inserted_id
    result = await _second_write(
        'create_thought',
        db.users.update_one({'username': doc['username']}, {'$push': {'thoughts': doc['_id']}}),
    )
    if result.matched_count == 0:
        logger.warning({'msg': 'thought_orphaned', 'thought_id': str(doc['_id']), 'username': doc['username']})
    return _expose(doc)

async def update_thought(db, thought_id: str, payload):
    # a changed username is not propagated to the authoring user's list
    oid = to_object_id(thought_id, 'Thought')
    fields = payload.model_dump(exclude_none=True)
    if fields:
        thought = await db.thoughts.find_one_and_update(
            {'_id': oid}, {'$set': fields}, return_document=ReturnDocument.AFTER
        )
    else:
        thought = await db.thoughts.find_one({'_id': oid})
    if not thought:
        raise NotFoundError('Thought')
    return _expose(thought)

async def delete_thought(db, thought_id: str):
    thought = await db.thoughts.find_one_and_delete({'_id': to_object_id(thought_id, 'Thought')})
    if not thought:
        raise NotFoundError('Thought')
    await _second_write(
        'delete_thought',
        db.users.update_one({'username': thought['username']}, {'$pull': {'thoughts': thought['_id']}}),
    )
    return _expose(thought)

# reactions

async def add_reaction(db, thought_id: str, payload):
    reaction = {
        'reactionId': ObjectId(),
        'reactionBody': payload.reactionBody,
        'username': payload.username,
        'createdAt': _now(),
    }
    thought = await db.thoughts.find_one_and_update(
        {'_id': to_object_id(thought_id, 'Thought')},
        {'$push': {'reactions': reaction}},
        return_document=ReturnDocument.AFTER,
    )
    if not thought:
        raise NotFoundError('Thought')
    return _expose(thought)

async def remove_reaction(db, thought_id: str, reaction_id: str):
    oid = to_object_id(thought_id, 'Thought')
    reaction_oid = _maybe_object_id(reaction_id)
    if reaction_oid:
        thought = await db.thoughts.find_one_and_update(
            {'_id': oid},
            {'$pull': {'reactions': {'reactionId': reaction_oid}}},
            return_document=ReturnDocument.AFTER,
        )
    else:
        thought = await db.thoughts.find_one({'_id': oid})
    if not thought:
        raise NotFoundError('Thought')
    return _expose(thought)
