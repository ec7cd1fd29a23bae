# API Routers
from . import prescriptions
