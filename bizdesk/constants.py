APP_NAME = "BizDesk"
DATA_DIR = ".bizdesk"

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 15.0

# ---- Orders ----
ORDER_BUY = "BUY"
ORDER_SELL = "SELL"
ORDER_TYPES = (ORDER_BUY, ORDER_SELL)

# ---- Accounts ----
ACCOUNT_BANK = "BANK"
ACCOUNT_BANK_OD = "BANK_OD"
ACCOUNT_CASH_COUNTER = "CASH_COUNTER"
ACCOUNT_CHEQUE = "CHEQUE"
ACCOUNT_MISC = "MISC"
ACCOUNT_TYPES = (
    ACCOUNT_BANK,
    ACCOUNT_BANK_OD,
    ACCOUNT_CASH_COUNTER,
    ACCOUNT_CHEQUE,
    ACCOUNT_MISC,
)

# ---- Charges / VAT ----
CHARGE_FIXED = "fixed"
CHARGE_PERCENTAGE = "percentage"
VAT_LABEL = "VAT"
VAT_RATE = 13.0

VAT_ALWAYS = "always"
VAT_NEVER = "never"
VAT_CONDITIONAL = "conditional"
VAT_STATUSES = (VAT_ALWAYS, VAT_NEVER, VAT_CONDITIONAL)

# ---- Money ----
CURRENCY_STEP = 0.01
EPS = 1e-9
