"""Person list: pagination, filter/order, selection, bulk delete and the controller composing them."""
