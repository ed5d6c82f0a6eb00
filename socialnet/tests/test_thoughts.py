import re
import pytest
from bson import ObjectId

TIMESTAMP = re.compile(r'^[A-Z][a-z]{2} \d{2}, \d{4} at \d{2}:\d{2} (am|pm)$')


async def thought_ids_of(db, user):
    stored = await db.users.find_one({'_id': ObjectId(user['id'])})
    return [str(t) for t in stored['thoughts']]


class TestThoughtLedger:
    """Thought lifecycle and its bookkeeping on the authoring user"""

    @pytest.mark.asyncio
    async def test_create_appends_to_author_once(self, client, make_user, db):
        abc = await make_user('abc')
        res = await client.post('/api/thoughts', json={'thoughtText': 'hi', 'username': 'abc'})
        assert res.status_code == 200, res.text
        thought = res.json()
        assert ObjectId.is_valid(thought['_id'])
        assert thought['reactions'] == []
        assert thought['reactionCount'] == 0
        assert TIMESTAMP.match(thought['createdAt'])

        assert await thought_ids_of(db, abc) == [thought['id']]
        detail = (await client.get(f"/api/users/{abc['id']}")).json()
        assert [t['id'] for t in detail['thoughts']] == [thought['id']]

    @pytest.mark.asyncio
    async def test_create_for_unknown_username_is_kept_as_orphan(self, client):
        res = await client.post('/api/thoughts', json={'thoughtText': 'nobody', 'username': 'ghost'})
        assert res.status_code == 200
        fetched = await client.get(f"/api/thoughts/{res.json()['id']}")
        assert fetched.status_code == 200
        assert fetched.json()['username'] == 'ghost'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('body', [
        {'thoughtText': '', 'username': 'abc'},
        {'thoughtText': 'x' * 281, 'username': 'abc'},
        {'thoughtText': 'no author'},
        {'username': 'abc'},
    ])
    async def test_invalid_thought_is_rejected(self, client, make_user, db, body):
        abc = await make_user('abc')
        res = await client.post('/api/thoughts', json=body)
        assert res.status_code == 400
        assert (await client.get('/api/thoughts')).json() == []
        assert await thought_ids_of(db, abc) == []

    @pytest.mark.asyncio
    async def test_text_of_exactly_280_characters_is_accepted(self, client):
        res = await client.post('/api/thoughts', json={'thoughtText': 'x' * 280, 'username': 'abc'})
        assert res.status_code == 200

    @pytest.mark.asyncio
    async def test_list_and_get(self, client, make_thought):
        first = await make_thought('abc', 'one')
        second = await make_thought('abc', 'two')

        listed = (await client.get('/api/thoughts')).json()
        assert [t['id'] for t in listed] == [first['id'], second['id']]

        res = await client.get(f"/api/thoughts/{second['id']}")
        assert res.status_code == 200
        assert res.json()['thoughtText'] == 'two'

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, client, make_thought):
        thought = await make_thought('abc', 'draft')
        res = await client.put(f"/api/thoughts/{thought['id']}", json={'thoughtText': 'final'})
        assert res.status_code == 200
        assert res.json()['thoughtText'] == 'final'
        assert res.json()['username'] == 'abc'
        assert res.json()['createdAt'] == thought['createdAt']

    @pytest.mark.asyncio
    async def test_update_rejects_overlong_text(self, client, make_thought):
        thought = await make_thought('abc', 'draft')
        res = await client.put(f"/api/thoughts/{thought['id']}", json={'thoughtText': 'y' * 281})
        assert res.status_code == 400
        assert (await client.get(f"/api/thoughts/{thought['id']}")).json()['thoughtText'] == 'draft'

    @pytest.mark.asyncio
    async def test_update_username_does_not_move_the_reference(self, client, make_user, make_thought, db):
        abc = await make_user('abc')
        await make_user('xyz')
        thought = await make_thought('abc')

        res = await client.put(f"/api/thoughts/{thought['id']}", json={'username': 'xyz'})
        assert res.status_code == 200
        assert res.json()['username'] == 'xyz'
        assert await thought_ids_of(db, abc) == [thought['id']]

    @pytest.mark.asyncio
    async def test_delete_removes_from_author(self, client, make_user, make_thought, db):
        abc = await make_user('abc')
        gone = await make_thought('abc', 'gone')
        kept = await make_thought('abc', 'kept')

        res = await client.delete(f"/api/thoughts/{gone['id']}")
        assert res.status_code == 200
        assert res.json() == {'message': 'Thought deleted'}
        assert (await client.get(f"/api/thoughts/{gone['id']}")).status_code == 404
        assert await thought_ids_of(db, abc) == [kept['id']]

    @pytest.mark.asyncio
    async def test_delete_orphan_is_fine(self, client, make_thought):
        orphan = await make_thought('ghost')
        res = await client.delete(f"/api/thoughts/{orphan['id']}")
        assert res.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize('method,body', [
        ('GET', None),
        ('PUT', {'thoughtText': 'x'}),
        ('DELETE', None),
    ])
    @pytest.mark.parametrize('thought_id', [str(ObjectId()), '123'])
    async def test_missing_thought_is_not_found(self, client, method, body, thought_id):
        res = await client.request(method, f'/api/thoughts/{thought_id}', json=body)
        assert res.status_code == 404
        assert res.json() == {'message': 'Thought not found'}


class TestReactions:

    @pytest.mark.asyncio
    async def test_add_and_remove_reaction(self, client, make_thought):
        thought = await make_thought('abc')

        res = await client.post(
            f"/api/thoughts/{thought['id']}/reactions",
            json={'reactionBody': 'nice', 'username': 'bob'},
        )
        assert res.status_code == 200, res.text
        updated = res.json()
        assert updated['reactionCount'] == 1
        reaction = updated['reactions'][0]
        assert reaction['reactionBody'] == 'nice'
        assert reaction['username'] == 'bob'
        assert ObjectId.is_valid(reaction['reactionId'])
        assert TIMESTAMP.match(reaction['createdAt'])

        res = await client.delete(f"/api/thoughts/{thought['id']}/reactions/{reaction['reactionId']}")
        assert res.status_code == 200
        assert res.json()['reactions'] == []

    @pytest.mark.asyncio
    async def test_removing_unknown_reaction_is_a_noop(self, client, make_thought):
        thought = await make_thought('abc')
        await client.post(f"/api/thoughts/{thought['id']}/reactions", json={'reactionBody': 'a', 'username': 'b'})

        res = await client.delete(f"/api/thoughts/{thought['id']}/reactions/{ObjectId()}")
        assert res.status_code == 200
        assert res.json()['reactionCount'] == 1

    @pytest.mark.asyncio
    async def test_reaction_validation(self, client, make_thought):
        thought = await make_thought('abc')
        res = await client.post(
            f"/api/thoughts/{thought['id']}/reactions",
            json={'reactionBody': 'z' * 281, 'username': 'bob'},
        )
        assert res.status_code == 400

    @pytest.mark.asyncio
    async def test_reaction_on_missing_thought(self, client):
        res = await client.post(
            f"/api/thoughts/{ObjectId()}/reactions",
            json={'reactionBody': 'hello', 'username': 'bob'},
        )
        assert res.status_code == 404
        assert res.json() == {'message': 'Thought not found'}

    @pytest.mark.asyncio
    async def test_reactions_go_with_deleted_thought(self, client, make_user, make_thought, db):
        abc = await make_user('abc')
        thought = await make_thought('abc')
        await client.post(f"/api/thoughts/{thought['id']}/reactions", json={'reactionBody': 'a', 'username': 'b'})

        await client.delete(f"/api/users/{abc['id']}")
        assert await db.thoughts.count_documents({}) == 0
