"""fitfeed: session store and daily motivation feed over WebSocket."""
