from billing.models.customer import Customer
from billing.models.document import Document
from billing.models.document_line import DocumentLine
from billing.models.expense import Expense
from billing.models.project import Project
from billing.models.time_entry import TimeEntry

__all__ = [
    "Customer",
    "Document",
    "DocumentLine",
    "Expense",
    "Project",
    "TimeEntry",
]
