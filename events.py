VOICE_JOIN = "voice:join" # inbound - { roomId, uid, name, peerId } + optional ack id
VOICE_LEAVE = "voice:leave" # inbound - { roomId, uid }
VOICE_USER_JOINED = "voice:user-joined" # outbound broadcast - { uid, name, peerId }
VOICE_USER_LEFT = "voice:user-left" # outbound broadcast - { uid }
ACK = "ack" # outbound reply to an inbound frame that carried an ack id

BAD_REQUEST = "BAD_REQUEST"

# **Frame shape (JSON text over the websocket)**
# - inbound:  `{"event": "voice:join", "data": {...}, "ack": 1}`
# - ack:      `{"event": "ack", "ack": 1, "data": {"ok": true, "peers": [...]}}`
# - outbound: `{"event": "voice:user-left", "data": {"uid": "u1"}}`
