"""
Database Package
Provides database models, connection management, and session handling
"""
from rxscan.database.connection import db_manager, init_database, DatabaseManager
from rxscan.database.models import Base, Prescription, PrescriptionMedicine


def init_db():
    """Initialize database with the configured URL"""
    init_database()


__all__ = [
    'db_manager', 'init_database', 'init_db', 'DatabaseManager',
    'Base', 'Prescription', 'PrescriptionMedicine',
]
