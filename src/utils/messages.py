from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class CatalogUpdatedMessage(Message):
    """
    Forwarded by the App to the active screen whenever a products snapshot
    (or a read error) arrives. Screens rebuild from state.products.
    Inactive screens rebuild on ScreenResume instead.
    """

    bubble = False


class OrdersUpdatedMessage(Message):
    """
    Same as CatalogUpdatedMessage, for the orders collection.
    """

    bubble = False


class CartChangedMessage(Message):
    """
    Posted to the current screen after any cart mutation,
    refreshes the cart lines and the sidebar badge.
    """

    bubble = False


class CheckoutCompleteMessage(Message):
    """
    Fired when an order is placed and the cart has been cleared.
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id


class AdminLockChangedMessage(Message):
    """
    Fired when the admin dashboard is unlocked or locked again.
    The App reacts by switching mode.
    """

    bubble = True

    def __init__(self, is_admin: bool) -> None:
        super().__init__()
        self.is_admin = is_admin

