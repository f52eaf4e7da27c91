from projectflow.dependencies.services import ServiceContainer, get_services, get_db, get_sync

__all__ = ["ServiceContainer", "get_services", "get_db", "get_sync"]
