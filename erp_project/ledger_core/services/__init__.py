from .accounts import (PostingAccounts, find_account_by_code,
                       resolve_posting_accounts, seed_chart_of_accounts,
                       soft_delete_account)
from .ledger import (check_trial_balance_invariant, post_voucher_entries,
                     reconcile_account_balances, void_voucher_entries)
from .matching import (approve_purchase_invoice, verify_purchase_invoice,
                       verify_three_way_match)
from .numbering import next_voucher_number
from .posting import post_purchase_invoice, post_sales_invoice, post_walk_in_sale
from .reports import get_account_ledger, get_trial_balance
from .validation import EntryLine, check_double_entry
from .vouchers import (create_voucher, delete_draft_voucher, post_voucher,
                       void_voucher, voucher_statistics)
