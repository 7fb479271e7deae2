import asyncio
import os

import dotenv

from sse_json_stream import EventStream, StreamRequestConfig

dotenv.load_dotenv()

# e.g. SSE_STREAM_BASE_URL=https://api.example.com and an endpoint that streams JSON deltas
config = StreamRequestConfig(
    url=lambda p: f"/v1/chats/{p['chat_id']}/stream",
    method="POST",
    body=lambda p: {"prompt": p["prompt"]},
)


async def main() -> None:
    async with EventStream(config) as stream:
        stream.add_event_listener("message", lambda m: print(m.event or "message", m.data, flush=True))
        stream.add_event_listener("error", lambda e: print("error:", e))
        stream.add_event_listener("close", lambda reason: print("closed:", reason.value))

        await stream.connect({"chat_id": os.getenv("CHAT_ID", "demo"), "prompt": "Explain SSE in one paragraph"})


asyncio.run(main())
