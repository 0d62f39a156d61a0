"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages (Telegram HTML parse mode)
- Command vocabulary
- Deny-list for the content gate

(Prevents hardcoding across the codebase)
"""

# ============================================================
# COMMANDS
# ============================================================

CMD_START = "/start"
CMD_LIST = "/list"
CMD_UPLOAD = "/upload"
CMD_DELETE = "/delete"
CMD_WEBHOOK = "/webhook"
CMD_GET_WEBHOOK_INFO = "/getwebhookinfo"
CMD_DELETE_WEBHOOK = "/deletewebhook"

COMMANDS = (
    CMD_START,
    CMD_LIST,
    CMD_UPLOAD,
    CMD_DELETE,
    CMD_WEBHOOK,
    CMD_GET_WEBHOOK_INFO,
    CMD_DELETE_WEBHOOK,
)

# ============================================================
# WELCOME
# ============================================================

WELCOME_MESSAGE = """👋 <b>Welcome to the Bot Hosting Bot!</b>

📂 <b>Your directory has been set up.</b>

🔹 <b>Available Commands:</b>
/list - List your files
/upload - Upload a file
/delete - Delete a file
/webhook - Set your bot's webhook URL
/getwebhookinfo - Get information about your bot's webhook
/deletewebhook - Delete your bot's webhook"""

UNKNOWN_COMMAND_MESSAGE = (
    "❓ <b>Unknown command.</b> Please use /list, /upload, /delete, "
    "/webhook, /getwebhookinfo, or /deletewebhook."
)

# ============================================================
# FILES
# ============================================================

FILE_LIST_HEADER = "📄 <b>Your Files:</b>\n📂 <b>Directory:</b> {directory}/\n\n"
FILE_LIST_ENTRY = "- <code>{name}</code> ({size}, Last Modified: {modified})"
NO_FILES_MESSAGE = "📁 No files found in your directory."

UPLOAD_PROMPT_MESSAGE = """📤 <b>Please send me a file to upload to your directory.</b>

⚠️ <b>Ensure your file is under {max_size} and you have not exceeded the maximum of {max_files} files.</b>"""

UPLOAD_TYPES_HINT = "\n\n📎 Allowed file types: {extensions}"
UPLOAD_GATE_HINT = "\n\n🛡️ Scripts containing disallowed functions are rejected."

DELETE_PROMPT_MESSAGE = "🗑️ <b>Please reply with the exact filename you want to delete from your directory:</b>\n\n{file_list}"

FILE_DELETED_MESSAGE = "✅ File <b>{name}</b> deleted successfully from your directory."
FILE_NOT_FOUND_MESSAGE = "❌ File <b>{name}</b> not found in your directory."
INVALID_FILENAME_MESSAGE = "❌ Invalid filename. Please start again with {command}."
DELETE_FAILED_MESSAGE = "❌ Error: Unable to delete <b>{name}</b>. Please check file permissions."

# ============================================================
# UPLOADS
# ============================================================

INVALID_UPLOAD_NAME_MESSAGE = "❌ Invalid filename. Please rename the file and upload it again."
UPLOAD_SUCCESS_MESSAGE = """✅ <b>File <code>{name}</code> uploaded successfully!</b>

🔗 Use the /webhook command to set your webhook URL, specifying this filename."""

FILE_TOO_LARGE_MESSAGE = "❌ <b>Error:</b> File too large. Maximum allowed size is {max_size}."
QUOTA_EXCEEDED_MESSAGE = """⚠️ <b>Upload limit reached.</b> You can only have up to {max_files} files in your directory.

🗑️ Please delete some files using the /delete command before uploading new ones."""
INVALID_FILE_TYPE_MESSAGE = "⚠️ Invalid file type. Allowed file types: {extensions}"
NAME_CONFLICT_MESSAGE = "⚠️ <b>A file named <code>{name}</code> already exists in your directory.</b> Please delete it first before uploading."
CONTENT_REJECTED_MESSAGE = "❌ Upload rejected: The following disallowed function(s) were found in your script: {functions}"
DOWNLOAD_FAILED_MESSAGE = "❌ <b>Error:</b> Failed to download the file."
SAVE_FAILED_MESSAGE = "❌ <b>Error:</b> Failed to save the uploaded file."
DIRECTORY_FAILED_MESSAGE = "❌ Error: Failed to create your directory."

# ============================================================
# WEBHOOK WORKFLOWS
# ============================================================

TOKEN_EXAMPLE = "<code>123456789:ABCdefGhIJKlmNoPQRsTuvWxYz</code>"

SET_WEBHOOK_PROMPT = f"""🔧 <b>Let's set up your webhook!</b>

1️⃣ Please provide your Telegram Bot Token.

<b>Your Bot Token looks like this:</b> {TOKEN_EXAMPLE}"""

GET_WEBHOOK_INFO_PROMPT = f"""🔍 <b>Let's retrieve your webhook information!</b>

1️⃣ Please provide your Telegram Bot Token.

<b>Your Bot Token looks like this:</b> {TOKEN_EXAMPLE}"""

DELETE_WEBHOOK_PROMPT = f"""🗑️ <b>Let's delete your webhook!</b>

1️⃣ Please provide your Telegram Bot Token.

<b>Your Bot Token looks like this:</b> {TOKEN_EXAMPLE}"""

TOKEN_RECEIVED_MESSAGE = """✅ Bot token received.

📄 Please send me the filename of your script (e.g., <code>myscript.php</code>)."""

INVALID_TOKEN_MESSAGE = "❌ Invalid bot token. Please try again using the {command} command."

WEBHOOK_FILE_NOT_FOUND_MESSAGE = (
    "❌ File <b>{name}</b> not found in your directory. "
    "Please ensure you've uploaded the correct file using the /upload command."
)

TOKEN_EXPIRED_MESSAGE = "❌ Your bot token was not found. Please start again with {command}."

SET_WEBHOOK_SUCCESS = "✅ Webhook set successfully!"
SET_WEBHOOK_FAILED = "❌ Failed to set webhook."
GET_WEBHOOK_INFO_FAILED = "❌ Failed to retrieve webhook info."
DELETE_WEBHOOK_SUCCESS = "✅ Webhook deleted successfully for your bot."
DELETE_WEBHOOK_FAILED = "❌ Failed to delete webhook."

API_RESPONSE_BLOCK = "\n\n📄 <b>Telegram API Response:</b>\n<pre>{json}</pre>"

WEBHOOK_INFO_MESSAGE = """🔍 <b>Webhook Information:</b>

<b>Status:</b> {status}
<b>Webhook URL:</b> {url}
<b>Pending Updates:</b> {pending}
<b>Last Error Message:</b> {last_error_message}
<b>Last Error Date:</b> {last_error_date}"""

RESPONSE_TOO_LARGE_MESSAGE = "📄 <b>Telegram API Response is too large to display.</b>"

# ============================================================
# ERRORS
# ============================================================

GENERIC_ERROR_MESSAGE = "❌ Something went wrong. Please try again or send /start."

# ============================================================
# CONTENT GATE
# ============================================================

DISALLOWED_FUNCTIONS = (
    "exec",
    "shell_exec",
    "system",
    "passthru",
    "proc_open",
    "popen",
    "curl_multi_exec",
    "parse_ini_file",
    "show_source",
    "eval",
    "assert",
    "base64_decode",
    "gzinflate",
    "create_function",
)
