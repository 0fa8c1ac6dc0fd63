"""Static catalog of the console's collections."""

from typing import Dict, List

from .models import CollectionDescriptor

DEFAULT_COLLECTIONS: List[CollectionDescriptor] = [
    CollectionDescriptor(name="customers", label="Customers", description="Customer information and contact details"),
    CollectionDescriptor(name="orders", label="Orders", description="Customer orders and furniture details"),
    CollectionDescriptor(name="corporate-orders", label="Corporate Orders", description="Corporate orders and bill invoices"),
    CollectionDescriptor(name="customer-invoices", label="Customer Invoices", description="Invoices issued to customers"),
    CollectionDescriptor(name="taxedInvoices", label="Taxed Invoices", description="Tax invoices for customers and corporate orders"),
    CollectionDescriptor(name="treatments", label="Treatments", description="Treatment types and pricing"),
    CollectionDescriptor(name="materialCompanies", label="Material Companies", description="Material suppliers and companies"),
    CollectionDescriptor(name="platforms", label="Platforms", description="Order platforms and sources"),
    CollectionDescriptor(name="leads", label="Leads", description="Lead management data"),
    CollectionDescriptor(name="invoiceStatuses", label="Invoice Statuses", description="Invoice status definitions"),
    CollectionDescriptor(name="extraExpenses", label="Extra Expenses", description="Additional expenses tracking"),
    CollectionDescriptor(name="corporateCustomers", label="Corporate Customers", description="Corporate customer accounts"),
    CollectionDescriptor(name="allocationOrders", label="Allocation Orders", description="Order allocation data"),
    CollectionDescriptor(name="website_images", label="Website Images", description="Website image references"),
    CollectionDescriptor(name="categories", label="Categories", description="Product categories"),
    CollectionDescriptor(name="tags", label="Tags", description="Product tags"),
    CollectionDescriptor(name="furniturePieces", label="Furniture Pieces", description="Furniture piece catalog"),
]


def collection_names() -> List[str]:
    return [descriptor.name for descriptor in DEFAULT_COLLECTIONS]


def descriptors_by_name() -> Dict[str, CollectionDescriptor]:
    return {descriptor.name: descriptor for descriptor in DEFAULT_COLLECTIONS}
