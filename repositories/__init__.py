from repositories.memory_store import InMemoryCaptchaStore
from repositories.mongo_store import MongoCaptchaStore
from repositories.protocol import CaptchaStore

__all__ = ["CaptchaStore", "InMemoryCaptchaStore", "MongoCaptchaStore"]
