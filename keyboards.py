# ------------------ UI builders ------------------
# Every builder returns action rows: [[(label, callback_data_or_url), ...], ...]
# transport.build_markup turns them into Telegram inline keyboards.

PROFILE_EMOJIS = [
    ("⭐", "Star"), ("🔥", "Fire"), ("🎯", "Target"), ("🌟", "Glow"),
    ("💫", "Sparkle"), ("🦋", "Butterfly"), ("🚀", "Rocket"), ("🎨", "Artist"),
    ("🐉", "Dragon"), ("🌙", "Moon"), ("⚡", "Zap"), ("🌈", "Rainbow"),
]

PRIVACY_FLAGS = {
    "show_confessions": "My Confessions",
    "show_comments": "My Comments",
    "show_following": "Who I Follow",
    "show_followers": "My Followers",
    "allow_chats": "Allow Chat Requests",
}


def main_menu_kb():
    return [
        [("✍️ Send Confession", "send_confession")],
        [("📋 Browse Confessions", "browse_confessions")],
        [("👤 My Profile", "show_profile")],
        [("📌 Rules", "show_rules"), ("ℹ️ About", "show_about")],
    ]


def back_to_menu_kb():
    return [
        [("✍️ Send Confession", "send_confession")],
        [("🔙 Main Menu", "main_menu")],
    ]


def after_submit_kb():
    return [
        [("✍️ Send Another", "send_confession")],
        [("📋 Browse Confessions", "browse_confessions")],
        [("🔙 Main Menu", "main_menu")],
    ]


def browse_kb():
    return [
        [("🔄 Latest Confessions", "view_latest_confessions")],
        [("🔙 Main Menu", "main_menu")],
    ]


def moderation_kb(confession_id: str, author_id: str):
    return [
        [("✅ Approve", f"approve_{confession_id}"), ("❌ Reject", f"reject_{confession_id}")],
        [("📩 Message User", f"message_user_{author_id}"), ("👀 View User", f"view_user_{author_id}")],
    ]


def channel_kb(deep_link: str, count: int):
    """Button on the channel post that deep-links into the bot's confession hub."""
    return [[(f"💬 View/Add Comments ({count})", deep_link)]]


def confession_hub_kb(confession_id: str, author_id: str, total_comments: int):
    return [
        [("💬 Add Comment", f"add_comment_{confession_id}")],
        [(f"📂 Browse Comments ({total_comments})", f"browse_comments_{confession_id}_1")],
        [("💌 Send Private Message", f"private_message_{author_id}")],
        [("👤 View Profile", f"view_profile_{author_id}")],
        [("➡️ Next Confession", f"next_confession_{confession_id}")],
    ]


def comments_page_kb(confession_id: str, page: int, total_pages: int):
    row = []
    if page > 1:
        row.append(("⬅ Prev", f"browse_comments_{confession_id}_{page - 1}"))
    row.append((f"Page {page}/{total_pages}", "noop"))
    if page < total_pages:
        row.append(("Next ➡", f"browse_comments_{confession_id}_{page + 1}"))
    return [
        row,
        [("💬 Add Comment", f"add_comment_{confession_id}")],
        [("🔙 Back to Confession", f"confession_{confession_id}")],
    ]


def comment_added_kb(confession_id: str):
    return [
        [("📋 Browse Comments", f"browse_comments_{confession_id}_1")],
        [("🔙 Back to Confession", f"confession_{confession_id}")],
    ]


def comment_notification_kb(confession_id: str):
    return [[("💬 View Comments", f"browse_comments_{confession_id}_1")]]


def private_message_received_kb(sender_id: str):
    return [[("💌 Reply Anonymously", f"private_message_{sender_id}")]]


def message_sent_kb(recipient_id: str):
    return [
        [("💌 Send Another Message", f"private_message_{recipient_id}")],
        [("👤 View Profile", f"view_profile_{recipient_id}")],
    ]


def public_profile_kb(target_id: str, viewer_id: str, allow_chats: bool, is_following: bool):
    rows = []
    if str(target_id) != str(viewer_id):
        if allow_chats:
            rows.append([("💌 Send Message", f"private_message_{target_id}")])
        label = "➖ Unfollow" if is_following else "➕ Follow"
        rows.append([(label, f"follow_{target_id}")])
    rows.append([("🔙 Main Menu", "main_menu")])
    return rows


def profile_main_kb():
    return [
        [("⚙️ Edit Profile", "edit_profile")],
        [("🔧 Settings", "user_settings")],
        [("📊 My Stats", "user_stats")],
        [("💌 My Messages", "my_messages")],
        [("🔙 Main Menu", "main_menu")],
    ]


def profile_edit_kb():
    return [
        [("🎭 Change Profile Emoji", "change_emoji")],
        [("📛 Change Nickname", "change_nickname")],
        [("📝 Set/Update Bio", "set_bio")],
        [("👁️ Edit Privacy Settings", "privacy_settings")],
        [("🔙 Back to Profile", "show_profile")],
    ]


def emoji_picker_kb():
    rows = []
    row = []
    for i, (emoji, name) in enumerate(PROFILE_EMOJIS, start=1):
        row.append((f"{emoji} {name}", f"set_emoji_{emoji}"))
        if i % 2 == 0:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    rows.append([("❌ Remove Emoji", "set_emoji_None")])
    rows.append([("🔙 Back", "edit_profile")])
    return rows


def privacy_kb():
    rows = [[(f"Toggle {label}", f"privacy_toggle_{flag}")] for flag, label in PRIVACY_FLAGS.items()]
    rows.append([("🔙 Back", "edit_profile")])
    return rows


def settings_kb():
    return [
        [("📄 Set Comments Per Page", "set_comments_page")],
        [("💬 Toggle Chat Requests", "privacy_toggle_allow_chats")],
        [("🔔 Toggle Notifications", "toggle_notifications")],
        [("🔙 Back to Profile", "show_profile")],
    ]


def page_size_kb(sizes):
    rows = [[(f"{n} per page", f"set_page_{n}")] for n in sizes]
    rows.append([("🔙 Back", "user_settings")])
    return rows


def back_to_profile_kb():
    return [[("🔙 Back to Profile", "show_profile")]]


def back_to_settings_kb():
    return [[("🔙 Back to Settings", "user_settings")]]


def admin_user_kb(user_id: str):
    return [
        [("📩 Message User", f"message_user_{user_id}")],
        [("🔙 Back", "admin_dashboard")],
    ]


def admin_dashboard_kb():
    return [
        [("📝 Pending Confessions", "admin_pending")],
        [("🔄 Refresh", "admin_dashboard")],
    ]


def admin_pending_kb():
    return [
        [("🔄 Refresh", "admin_pending")],
        [("🔙 Back to Dashboard", "admin_dashboard")],
    ]


def latest_confessions_kb(confessions):
    rows = [[(f"#{c.confession_number}: {c.preview(30)}", f"confession_{c.confession_id}")] for c in confessions]
    rows.append([("🔙 Main Menu", "main_menu")])
    return rows
