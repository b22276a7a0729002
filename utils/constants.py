"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages
- Button labels and menu layout
- Membership statuses accepted by the access gate

(Prevents hardcoding across the codebase)
"""

# ============================================================
# BUTTON LABELS
# ============================================================

BUTTON_REFER = "Refer & Earn 🎁"
BUTTON_BUY = "Buy Credits 💰"
BUTTON_ACCOUNT = "My Account 📊"
BUTTON_HELP = "Help ❓"

BUTTON_ADD_CREDIT = "Add Credit 👤"
BUTTON_BROADCAST = "Broadcast 📢"
BUTTON_MEMBER_STATUS = "Member Status 👥"

BASE_MENU = [
    [BUTTON_REFER, BUTTON_BUY],
    [BUTTON_ACCOUNT, BUTTON_HELP],
]

ADMIN_MENU = [
    [BUTTON_ADD_CREDIT, BUTTON_BROADCAST],
    [BUTTON_MEMBER_STATUS],
]

CANCEL_COMMAND = "cancel"
START_COMMAND = "start"

# Telegram reports the channel owner as "creator"
ALLOWED_MEMBER_STATUSES = frozenset({"member", "administrator", "creator", "owner"})

# ============================================================
# ACCESS GATE
# ============================================================

ACCESS_DENIED_MESSAGE = """❗️ *Access Denied*

To use this bot, you must join our official channel.
Please join 👉 {channel} and then press /start."""

MEMBERSHIP_CHECK_FAILED_MESSAGE = "⛔️ Error verifying channel membership. Please contact support."

# ============================================================
# REGISTRATION & ACCOUNT
# ============================================================

NEW_MEMBER_WELCOME_MESSAGE = """🎉 Welcome aboard, {name}!

As a new member, you've received *{credits} free credits*."""

WELCOME_MESSAGE = """🎯 *Welcome*

🔍 Phone Number Lookup Bot

Send any phone number (10 or more digits) to get its report.

💳 *Your Credits:* {credits}
📊 *Total Searches:* {searches}
📅 *Member Since:* {joined}"""

ACCOUNT_MESSAGE = """🎯 *Welcome, {name}!*

💳 *Your Credits:* {credits}
📊 *Total Searches:* {searches}
🗓️ *Member Since:* {joined}"""

REGISTER_FIRST_MESSAGE = "Please press /start to register."

NEW_MEMBER_ALERT = """🎉 New Member Alert!
Name: {name}
Profile: [{user_id}](tg://user?id={user_id})"""

REFERRAL_RECEIVED_MESSAGE = """🎉 *1 Referral Received!*
Your new balance is now *{credits} credits*."""

REFER_MESSAGE = """🎁 *Refer & Earn Credits*

📊 *Your Performance:*
👥 Total Referrals: {referrals}
💰 Credits Earned: {credits_earned}

💡 *How It Works:*
• Share your referral link with friends
• They get {initial_credits} free credits when joining
• You earn {referral_credit} credit for each successful referral

📱 *Your Referral Link:*
`{link}`

🚀 Start sharing to earn unlimited credits!"""

BUY_CREDITS_MESSAGE = """💰 *Buy Credits - Price List*
━━━━━━━━━━━━━━━━━━━━━━━━
💎 *STARTER* - 25 Credits (₹49)
🔥 *BASIC* - 100 Credits (₹149)
⭐ *PRO* - 500 Credits (₹499)
━━━━━━━━━━━━━━━━━━━━━━━━
💬 Contact admin to buy: {support}"""

HELP_MESSAGE = """❓ *Help & Support Center*

🔍 *How to Use:*
• Send a phone number to get its report.
• Each search costs 1 credit.
• Failed searches are refunded automatically.

🎁 *Referral Program:*
• Get {referral_credit} credit per successful referral.

👤 *Support:* {support}"""

MEMBER_STATUS_MESSAGE = """📊 *Bot Member Status*

Total Members: *{total}*"""

# ============================================================
# LOOKUP
# ============================================================

INVALID_QUERY_MESSAGE = (
    "That doesn't seem to be a valid command or phone number. "
    "Please use the menu buttons or send a 10-digit number."
)

INSUFFICIENT_CREDITS_MESSAGE = "You have insufficient credits. Tap *Buy Credits 💰* to top up."

PROCESSING_MESSAGE = "🔎 Accessing database... This will consume 1 credit."

LOOKUP_SUCCESS_MESSAGE = """✅ *Database Report Generated!*
Found *{count}* record(s) for `{number}`. Details below:"""

LOOKUP_REFUND_MESSAGE = """❌ *No Data Found.*
Please check the number and try again. Your credit has been refunded."""

BALANCE_MESSAGE = "💳 Credits remaining: *{credits}*"

RECORD_MESSAGE = """📊 *Record {position} of {total}*
➖➖➖➖➖➖➖➖➖➖
👤 *Name:* `{name}`
👨 *Father's Name:* `{fname}`
📱 *Mobile:* `{mobile}`
🏠 *Address:* `{address}`
📡 *Circle:* `{circle}`"""

MISSING_FIELD = "N/A"

# ============================================================
# FLOWS
# ============================================================

FLOW_CANCELLED_MESSAGE = "🔹 Action has been cancelled."

NOTHING_TO_CANCEL_MESSAGE = "🔹 There is nothing to cancel."

FLOW_EXPIRED_MESSAGE = "⌛️ Your previous action timed out and was discarded."

CREDIT_GRANT_PROMPT = """👤 Please send the User ID of the recipient.

Type /cancel to abort."""

CREDIT_GRANT_INVALID_ID = "❗️Invalid ID format. Please send numbers only or type /cancel."

CREDIT_GRANT_USER_NOT_FOUND = "⚠️ User not found. Please check the ID and try again, or type /cancel."

CREDIT_GRANT_ASK_AMOUNT = "✅ User `{target_id}` found. Now, please send the amount of credits to add."

CREDIT_GRANT_INVALID_AMOUNT = "❗️Invalid amount. Please send a positive number or type /cancel."

CREDIT_GRANT_SUCCESS = "✅ Success! Added {amount} credits to user {target_id}."

CREDIT_GRANT_TARGET_GONE = "⚠️ User {target_id} no longer exists. No credits were added."

CREDIT_GRANT_NOTIFICATION = "🎉 An administrator has added *{amount} credits* to your account!"

BROADCAST_PROMPT = """📢 Please send the message to broadcast.

Type /cancel to abort."""

BROADCAST_STARTED = "⏳ Broadcasting your message to {count} users..."

BROADCAST_COMPLETE = """📢 *Broadcast Complete!*
✅ Sent: {sent}
❌ Failed: {failed}"""

# ============================================================
# ERRORS
# ============================================================

GENERIC_ERROR_MESSAGE = "❌ Something went wrong. Please try again later."
