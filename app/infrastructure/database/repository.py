# Base repository and concrete repositories for MongoDB access
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument


def to_object_id(value: Any) -> Any:
    """Convert a hex string id to ObjectId; anything else is passed through."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Repository:
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def get_by_id(self, id: Any) -> Optional[Dict]:
        return await self.collection.find_one({'_id': to_object_id(id)})

    async def create(self, data: Dict) -> str:
        result = await self.collection.insert_one(data)
        return str(result.inserted_id)


class UserRepository(Repository):
    async def get_by_email(self, email: str) -> Optional[Dict]:
        return await self.collection.find_one({'email': email})

    async def reserve_credits(self, user_id: str, amount: int) -> bool:
        """
        Debit `amount` credits only if the balance covers it.
        The balance check and the decrement are a single atomic update.
        """
        result = await self.collection.update_one(
            {'_id': to_object_id(user_id), 'credits': {'$gte': amount}},
            {'$inc': {'credits': -amount}}
        )
        return result.modified_count == 1

    async def add_credits(self, user_id: str, amount: int) -> bool:
        result = await self.collection.update_one(
            {'_id': to_object_id(user_id)},
            {'$inc': {'credits': amount}}
        )
        return result.modified_count == 1


class ChatRepository(Repository):
    async def get_for_user(self, chat_id: str, user_id: str) -> Optional[Dict]:
        return await self.collection.find_one({'_id': to_object_id(chat_id), 'userId': user_id})

    async def list_for_user(self, user_id: str) -> List[Dict]:
        cursor = self.collection.find({'userId': user_id}).sort('updatedAt', -1)
        return [doc async for doc in cursor]

    async def find_empty_for_user(self, user_id: str) -> Optional[Dict]:
        return await self.collection.find_one(
            {'userId': user_id, 'messages': {'$size': 0}},
            sort=[('updatedAt', -1)]
        )

    async def delete_for_user(self, chat_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({'_id': to_object_id(chat_id), 'userId': user_id})
        return result.deleted_count > 0

    async def append_messages(self, chat_id: str, user_id: str, messages: List[Dict]) -> bool:
        """
        Append messages in one `$push`, so concurrent sends to the same chat
        cannot overwrite each other.
        """
        result = await self.collection.update_one(
            {'_id': to_object_id(chat_id), 'userId': user_id},
            {
                '$push': {'messages': {'$each': messages}},
                '$set': {'updatedAt': utcnow()}
            }
        )
        return result.matched_count == 1

    async def delete_empty_before(self, cutoff: datetime) -> int:
        """Delete chats created before `cutoff` that have no messages or a blank first message."""
        result = await self.collection.delete_many({
            'createdAt': {'$lt': cutoff},
            '$or': [
                {'messages': {'$size': 0}},
                {'messages.0.content': {'$regex': r'^\s*$'}}
            ]
        })
        return result.deleted_count

    async def list_published_images(self, limit: int = 100) -> List[Dict]:
        pipeline = [
            {'$unwind': '$messages'},
            {'$match': {'messages.isImage': True, 'messages.isPublished': True}},
            {'$sort': {'messages.timestamp': -1}},
            {'$limit': limit},
            {'$project': {'_id': 0, 'imageUrl': '$messages.content', 'userName': '$userName'}}
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)


class TransactionRepository(Repository):
    async def list_for_user(self, user_id: str) -> List[Dict]:
        cursor = self.collection.find({'userId': user_id}).sort('createdAt', -1)
        return [doc async for doc in cursor]

    async def mark_paid(self, transaction_id: str) -> Optional[Dict]:
        """
        Flip an unpaid transaction to paid.
        Returns the transaction only for the call that performed the flip.
        """
        return await self.collection.find_one_and_update(
            {'_id': to_object_id(transaction_id), 'isPaid': False},
            {'$set': {'isPaid': True, 'paidAt': utcnow()}},
            return_document=ReturnDocument.AFTER
        )
