"""Redis key layout and scripts for the shared connection registry."""

from __future__ import annotations

ONLINE_HASH = "presence:online"
SID_PREFIX = "presence:sid:"

# KEYS: online hash. ARGV: user, sid, sid key prefix.
# Returns {previous sid of user, user displaced from this sid}; "" when absent.
REGISTER_LUA = """
local hash, user, sid, prefix = KEYS[1], ARGV[1], ARGV[2], ARGV[3]
local sid_key = prefix .. sid
local displaced = ''
local holder = redis.call('GET', sid_key)
if holder and holder ~= user and redis.call('HGET', hash, holder) == sid then
	redis.call('HDEL', hash, holder)
	displaced = holder
end
local previous = redis.call('HGET', hash, user)
if previous and previous ~= sid then
	redis.call('DEL', prefix .. previous)
end
redis.call('HSET', hash, user, sid)
redis.call('SET', sid_key, user)
return {previous or '', displaced}
"""

# KEYS: online hash, sid key. ARGV: sid.
# Returns the user when the sid was still current, nil otherwise.
UNREGISTER_LUA = """
local user = redis.call('GET', KEYS[2])
if not user then
	return false
end
redis.call('DEL', KEYS[2])
if redis.call('HGET', KEYS[1], user) ~= ARGV[1] then
	return false
end
redis.call('HDEL', KEYS[1], user)
return user
"""


def sid_key(sid: str) -> str:
	return f"{SID_PREFIX}{sid}"
