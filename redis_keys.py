REDIS_ROOM_ID_KEY = "room:next_id" # room id counter
REDIS_META_KEY = "room:meta:{room_id}" # room id - room fields
REDIS_NAMES_KEY = "room:names" # room name -> room id
REDIS_INVITES_KEY = "room:invites" # invite code -> room id
REDIS_ACTIVITY_KEY = "room:activity" # room id scored by last activity
REDIS_MEMBERS_KEY = "room:members:{room_id}" # room id - member name -> membership json
REDIS_MESSAGES_KEY = "room:messages:{room_id}" # room id - message json list, newest first
REDIS_MESSAGE_ID_KEY = "message:next_id" # message id counter

# **Example `room:meta:{id}` hash fields**
# - `id` = `{roomId}`
# - `name` = display name
# - `is_private` = "1" or "0"
# - `password_hash` = sha256 hex digest (private rooms only)
# - `invite_code` = 8 char upper-case code
# - `owner_name` = creator display name
# - `created_at` / `last_active_at` = ISO timestamps
