from .settings import AdmissionControlSettings

__all__ = ["AdmissionControlSettings"]
