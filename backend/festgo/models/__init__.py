from .catalog import Event, Bar, Product
from .stock import StockAssignment, StockMovement
from .carts import Cart, CartItem
from .tickets import Ticket, TicketItem

__all__ = [
    'Event', 'Bar', 'Product',
    'StockAssignment', 'StockMovement',
    'Cart', 'CartItem',
    'Ticket', 'TicketItem',
]
