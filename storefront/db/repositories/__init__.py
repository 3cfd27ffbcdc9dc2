from storefront.db.repositories.admin_users import AdminUsersRepository
from storefront.db.repositories.attribute_definitions import AttributeDefinitionsRepository
from storefront.db.repositories.brands import BrandsRepository
from storefront.db.repositories.categories import CategoriesRepository
from storefront.db.repositories.customers import CustomersRepository
from storefront.db.repositories.orders import OrdersRepository
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.products import ProductsRepository
from storefront.db.repositories.site_config import SiteConfigRepository
