# Service provider for repositories
from app.services.database import get_collection
from app.infrastructure.database.repository import ChatRepository, TransactionRepository, UserRepository

# Factory functions for repositories
def get_user_repository():
    collection = get_collection('users')
    return UserRepository(collection)

def get_chat_repository():
    collection = get_collection('chats')
    return ChatRepository(collection)

def get_transaction_repository():
    collection = get_collection('transactions')
    return TransactionRepository(collection)
