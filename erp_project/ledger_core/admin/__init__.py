from .account import AccountAdmin, PostingAccountMappingAdmin
from .actions import (post_purchase_invoices, post_sales_invoices,
                      post_vouchers, post_walk_in_sales,
                      verify_purchase_invoices)
from .auditlog import AuditLogAdmin
from .documents import (CustomerAdmin, PurchaseInvoiceAdmin,
                        SalesInvoiceAdmin, SupplierAdmin, WalkInSaleAdmin)
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .membership import OrganizationAdmin, OrganizationMembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .voucher import LedgerEntryAdmin, VoucherAdmin
