# Recommendation kinds (also the cache key namespaces)
KIND_RELATED = "related"            # content-similar products from any vendor
KIND_TRENDING = "trending"          # recent, well-rated, frequently ordered products
KIND_PERSONALIZED = "personalized"  # driven by the user's purchase history
KIND_VENDOR = "vendor"              # vendor metrics snapshots

# List of all request types accepted by the query facade
ALL_KINDS = (KIND_RELATED, KIND_TRENDING, KIND_PERSONALIZED)

# Content similarity: tags carry color/size, category is coarse
TAG_WEIGHT = 0.7
CATEGORY_WEIGHT = 0.3

# Personalized content score
PERSONAL_CATEGORY_WEIGHT = 0.5
PERSONAL_TAG_WEIGHT = 0.5
PERSONAL_MAX_PER_VENDOR = 2  # fixed cap, not configurable per request

# Trending score blend (recent_orders is a raw count, not normalized)
TRENDING_ORDERS_WEIGHT = 0.4
TRENDING_VENDOR_WEIGHT = 0.3
TRENDING_RATING_WEIGHT = 0.2
TRENDING_RECENCY_WEIGHT = 0.1

# Vendor reliability: (minimum average rating, multiplier), checked top-down
VENDOR_RELIABILITY_STEPS = (
    (4.5, 1.5),
    (4.0, 1.2),
    (3.5, 1.0),
    (3.0, 0.8),
)
VENDOR_DEFAULT_MULTIPLIER = 0.5  # low-rated, unrated or new vendors

# Strategy defaults
RELATED_LIMIT = 10
RELATED_MAX_PER_VENDOR = 2
TRENDING_LIMIT = 20
TRENDING_MAX_PER_VENDOR = 3
PERSONALIZED_LIMIT = 15

# Query facade defaults
QUERY_DEFAULT_TYPE = KIND_TRENDING
QUERY_DEFAULT_LIMIT = 10
QUERY_DEFAULT_MAX_PER_VENDOR = 2
