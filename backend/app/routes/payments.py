from fastapi import APIRouter, Depends

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user, is_admin
from app.schemas.payments import PayPalCreateSchema, PayPalExecuteSchema, StripeIntentSchema
from guestpost.core.responses import ApiResponse

payment_router = APIRouter(tags=["Payments"])


@payment_router.get("/stripe/publishable-key")
async def get_stripe_publishable_key(services: Services = Depends(get_services)):
    key = services.payments.get_stripe_publishable_key()
    return ApiResponse.success({"publishableKey": key}, "Stripe publishable key retrieved")


@payment_router.post("/stripe/create-intent")
async def create_stripe_payment_intent(data: StripeIntentSchema,
                                       current_user: dict = Depends(get_current_user),
                                       services: Services = Depends(get_services)):
    result = await services.payments.create_stripe_payment_intent({
        **data.model_dump(exclude_none=True),
        "userId": str(current_user["_id"]),
        "userEmail": current_user["user_email"],
    })
    return ApiResponse.success(result, "Payment intent created successfully")


@payment_router.get("/stripe/verify/{paymentIntentId}")
async def verify_stripe_payment(paymentIntentId: str,
                                current_user: dict = Depends(get_current_user),
                                services: Services = Depends(get_services)):
    verified = await services.payments.verify_stripe_payment(paymentIntentId)
    message = "Payment verified successfully" if verified else "Payment verification failed"
    return ApiResponse.success({"verified": verified}, message)


@payment_router.post("/paypal/create")
async def create_paypal_payment(data: PayPalCreateSchema,
                                current_user: dict = Depends(get_current_user),
                                services: Services = Depends(get_services)):
    result = await services.payments.create_paypal_payment({
        **data.model_dump(exclude_none=True),
        "userId": str(current_user["_id"]),
        "userEmail": current_user["user_email"],
    })
    return ApiResponse.success(result, "PayPal payment created successfully")


@payment_router.post("/paypal/execute")
async def execute_paypal_payment(data: PayPalExecuteSchema,
                                 current_user: dict = Depends(get_current_user),
                                 services: Services = Depends(get_services)):
    result = await services.payments.execute_paypal_payment(data.paymentId, data.payerId)
    return ApiResponse.success(result, "PayPal payment executed successfully")


@payment_router.get("/paypal/test-credentials")
async def test_paypal_credentials(admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    settings = services.settings
    status = services.payments.paypal_credentials_status(settings.PAYPAL_CLIENT_ID, settings.PAYPAL_CLIENT_SECRET)
    return ApiResponse.success(status, "Check PayPal Developer Dashboard to verify these credentials match your app")
