# src/dependencies/clients.py
from src.infrastructure.linkedin_client import LinkedInClient
from src.infrastructure.object_storage import StorageBackend, get_object_storage

def get_storage() -> StorageBackend:
    return get_object_storage()

def get_linkedin_client() -> LinkedInClient:
    return LinkedInClient()
