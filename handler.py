#!/usr/bin/env python3
"""
Lambda handler for the booking API.
HTTP events go through Mangum; scheduled EventBridge events run daily maintenance.
"""
import asyncio
import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_asgi_handler = None


def _get_asgi_handler():
    global _asgi_handler
    if _asgi_handler is None:
        from mangum import Mangum
        from practice_booking.main import app

        _asgi_handler = Mangum(app, lifespan="off")
    return _asgi_handler


async def _run_maintenance() -> dict:
    from practice_booking.api.deps import availability_cache
    from practice_booking.db.session import AsyncSessionLocal
    from practice_booking.services.maintenance import run_daily_maintenance

    async with AsyncSessionLocal() as session:
        report = await run_daily_maintenance(session, cache=availability_cache)
    return report.model_dump()


def is_scheduled_event(event) -> bool:
    return isinstance(event, dict) and event.get("source") == "aws.events"


def lambda_handler(event, context):
    if is_scheduled_event(event):
        logger.info("Running scheduled maintenance")
        report = asyncio.run(_run_maintenance())
        logger.info(f"Maintenance finished: {report}")
        return {"statusCode": 200, "body": report}

    try:
        logger.info(f"Processing Lambda event: {event.get('httpMethod', 'UNKNOWN')} {event.get('path', '/')}")
        response = _get_asgi_handler()(event, context)
        logger.info(f"Lambda response status: {response.get('statusCode', 'unknown')}")
        return response
    except Exception as e:
        logger.error(f"Lambda handler error: {str(e)}", exc_info=True)
        return {
            'statusCode': 500,
            'headers': {
                'Content-Type': 'application/json',
                'Access-Control-Allow-Origin': '*'
            },
            'body': '{"error": "Internal server error"}'
        }


# For local testing compatibility
if __name__ == "__main__":
    print("Lambda handler ready for deployment")
    print("To test locally, use: python -m uvicorn practice_booking.main:app --reload")
