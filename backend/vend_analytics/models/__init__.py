# Ensure all model classes are imported and registered on Base.metadata
from .account import Account  # noqa: F401
from .fleet import Region, Location, Machine  # noqa: F401
from .sales import SalesRecord  # noqa: F401
from .upload import UploadJob  # noqa: F401
