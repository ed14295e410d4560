from .account import (AC_CATEGORIES, AC_TYPES, ACCOUNT_ROLES,
                      NORMAL_BALANCE_BY_TYPE, Account, PostingAccountMapping)
from .auditlog import AuditLog
from .documents import (PurchaseInvoice, PurchaseInvoiceLine, SalesInvoice,
                        SalesInvoiceLine, WalkInSale, WalkInSaleLine)
from .ledger import LedgerEntry
from .organization import Organization, OrganizationMembership, User
from .parties import Customer, Supplier
from .voucher import Voucher, VoucherEntry, VoucherSequence
