import asyncio

import dotenv

from sse_json_stream import EventStream, StreamAbortedError, StreamMessage, StreamRequestConfig, with_promise

dotenv.load_dotenv()

MAX_MESSAGES = 20


async def main() -> None:
    async with EventStream(StreamRequestConfig(url="/v1/events")) as stream:
        received = 0

        def on_message(message: StreamMessage) -> None:
            nonlocal received
            received += 1
            print(received, message.data)
            if received >= MAX_MESSAGES:
                stream.disconnect()

        try:
            last = await with_promise(stream, on_message=on_message)
        except StreamAbortedError:
            print(f"stopped after {received} messages")
        else:
            print("finished, last message:", last)


asyncio.run(main())
