import factory
from cart.models import Cart, CartItem
from common.money import quantize
from factory.django import DjangoModelFactory


class CartFactory(DjangoModelFactory):
    class Meta:
        model = Cart

    user = factory.SubFactory("users.tests.factories.UserFactory")
    discount = 0
    is_active = True


class CartItemFactory(DjangoModelFactory):
    class Meta:
        model = CartItem

    cart = factory.SubFactory(CartFactory)
    product = factory.SubFactory("catalog.tests.factories.ProductFactory")
    product_name = factory.LazyAttribute(lambda o: o.product.name)
    product_image = factory.LazyAttribute(lambda o: o.product.image)
    unit_price = factory.LazyAttribute(lambda o: o.product.effective_price)
    quantity = 1
    subtotal = factory.LazyAttribute(lambda o: quantize(o.unit_price) * o.quantity)
