# Inbound events (client -> server)
CREATE_ROOM = "create-room"
GET_ROOMS = "get-rooms"
JOIN_ROOM = "join-room"
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "ice-candidate"
GAME_INIT = "game-init"
REQUEST_GAME_INIT = "request-game-init"
CONNECTION_STATE = "connection-state"
GAME_END = "game-end"
LEAVE_ROOM = "leave-room"

# Outbound events (server -> client)
ROOM_CREATED = "room-created"
ROOM_LIST = "room-list"
ROOM_JOINED = "room-joined"
GUEST_JOINED = "guest-joined"
PEER_CONNECTION_STATE = "peer-connection-state"
GAME_ENDED = "game-ended"
OPPONENT_LEFT = "opponent-left"
OPPONENT_DISCONNECTED = "opponent-disconnected"
ERROR = "error"

# offer, answer, ice-candidate, game-init and request-game-init keep
# their inbound names on the way out.

# **Message shape**
# - every frame is a JSON object with a `type` field holding one of the names above
# - payload fields sit next to `type`, e.g. {"type": "offer", "roomId": "AB12CD", "offer": {...}}
