# foodie_live -- Live dish viewer counts over WebSocket
