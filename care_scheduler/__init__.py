"""Care-services scheduling: workers, clients, appointments and invoices"""

__version__ = "1.0.0"
