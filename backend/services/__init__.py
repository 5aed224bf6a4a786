# Import services from their modules directly, e.g.
# from services.relationship_sync import sync_subcategories
# from services.repository import ClothTypeRepository

__all__ = []
