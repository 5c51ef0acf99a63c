"""
GROQ queries for the admin insights and stats endpoints
"""

COMPLETED_STATUSES = '["paid", "shipped", "delivered"]'

ORDERS_LAST_7_DAYS_QUERY = """*[
  _type == "order"
  && createdAt >= $startDate
] | order(createdAt desc) {
  _id,
  orderNumber,
  total,
  status,
  createdAt,
  "itemCount": count(items),
  "items": items[]{
    quantity,
    priceAtPurchase,
    "productName": product->name,
    "productId": product->_id
  }
}"""

ORDER_STATUS_DISTRIBUTION_QUERY = """{
  "paid": count(*[_type == "order" && status == "paid"]),
  "shipped": count(*[_type == "order" && status == "shipped"]),
  "delivered": count(*[_type == "order" && status == "delivered"]),
  "cancelled": count(*[_type == "order" && status == "cancelled"])
}"""

TOP_SELLING_PRODUCTS_QUERY = f"""*[
  _type == "order"
  && status in {COMPLETED_STATUSES}
].items[]{{
  "productId": product->_id,
  "productName": product->name,
  "productPrice": product->price,
  quantity
}}"""

PRODUCTS_INVENTORY_QUERY = """*[_type == "product"] | order(name asc) {
  _id,
  name,
  price,
  stock,
  "category": category->title
}"""

UNFULFILLED_ORDERS_QUERY = """*[
  _type == "order"
  && status == "paid"
] | order(createdAt asc) {
  _id,
  orderNumber,
  total,
  createdAt,
  email,
  "itemCount": count(items)
}"""

REVENUE_BY_PERIOD_QUERY = f"""{{
  "currentPeriod": math::sum(*[
    _type == "order"
    && status in {COMPLETED_STATUSES}
    && createdAt >= $currentStart
  ].total),
  "previousPeriod": math::sum(*[
    _type == "order"
    && status in {COMPLETED_STATUSES}
    && createdAt >= $previousStart
    && createdAt < $currentStart
  ].total),
  "currentOrderCount": count(*[
    _type == "order"
    && status in {COMPLETED_STATUSES}
    && createdAt >= $currentStart
  ]),
  "previousOrderCount": count(*[
    _type == "order"
    && status in {COMPLETED_STATUSES}
    && createdAt >= $previousStart
    && createdAt < $currentStart
  ])
}}"""

TOTAL_REVENUE_QUERY = f"""math::sum(*[
  _type == "order"
  && status in {COMPLETED_STATUSES}
].total)"""

CUSTOMER_COUNT_QUERY = """count(*[_type == "customer"])"""

ORDER_COUNT_QUERY = """count(*[_type == "order"])"""

LOW_STOCK_COUNT_QUERY = """count(*[_type == "product" && stock <= 5])"""

REVENUE_OVER_TIME_QUERY = f"""*[
  _type == "order"
  && status in {COMPLETED_STATUSES}
  && createdAt >= $startDate
] | order(createdAt asc) {{
  "date": createdAt,
  total
}}"""

# $search is a GROQ match pattern such as "*smith*", or null for no filter;
# the slice end is exclusive
CUSTOMERS_WITH_STATS_QUERY = f"""*[
  _type == "customer"
  && ($search == null || email match $search || name match $search)
] | order(_createdAt desc) [$start...$end] {{
  _id,
  email,
  name,
  stripeCustomerId,
  createdAt,
  "orderCount": count(*[_type == "order" && references(^._id)]),
  "totalSpent": math::sum(*[
    _type == "order"
    && references(^._id)
    && status in {COMPLETED_STATUSES}
  ].total),
  "lastOrderDate": *[_type == "order" && references(^._id)] | order(createdAt desc)[0].createdAt
}}"""
