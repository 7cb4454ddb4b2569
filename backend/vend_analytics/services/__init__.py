from . import analytics, export, fleet, store, uploads
