# crudblueprint

This package provides the pieces behind a JSON CRUD API. Each piece is a
plain Python object. None of them depends on a web framework, so you can
connect them to whichever framework you use.

- `crudblueprint.config`: `EnvConfig` loads a `.env` file and gives typed
  access to settings. Its methods are `get`, `get_int`, `get_bool`,
  `get_list`, `has`, `db_rdbms` and `db_default_port`. The module also
  provides the helpers `parse_env_line` and `normalize_engine`.
- `crudblueprint.responses`: the `Request` and `Response` dataclasses, and
  builders for JSON responses. The builders are `ok`, `created`,
  `no_content`, `paginated`, `error`, `bad_request`, `not_found`, `conflict`,
  `internal_error` and `validation_error`.
- `crudblueprint.lru`: `LruCache`, a thread-safe LRU cache where each entry
  has its own TTL. Expired entries are removed when they are read, or all at
  once by `evict_expired`. `invalidate_by_prefix` removes every entry whose
  key starts with a given prefix.
- `crudblueprint.list_params`: `parse_list_params` reads a mapping of query
  parameters and returns a `ListParams`. It understands `limit`, `offset`,
  `sort=column` or `sort=column:asc|desc`, and `filter[column]=value`.
  `limit` is capped at 50000. A `limit` of 0 becomes 20. Numbers that cannot
  be read leave the default in place.
- `crudblueprint.response_cache`: `ResponseCache`, the in-process L1 cache
  for the bodies of GET responses. Its keys have the form
  `METHOD:path:query`, which `build_key` produces.
- `crudblueprint.redis_cache`: `RedisCache`, the optional L2 cache, which
  stores compact JSON in Redis.
  - `RedisCache.from_config` enables the cache when `REDIS_HOST` is set.
  - `create_client` builds a `redis.asyncio.Redis` client from the
    `REDIS_HOST`, `REDIS_PORT`, `REDIS_PASSWORD` and `REDIS_DB` settings.
  - `mark_registered(client)` attaches that client to the cache.
  - If the cache has no client, every operation does nothing. Redis errors
    are logged, and the operation then behaves as if Redis were absent.
- `crudblueprint.cache_manager`: `CacheManager` joins the two tiers.
  - Reads check L1 first, then L2, and copy an L2 hit back into L1.
  - `put` writes to both tiers. It stores only GET requests.
  - `invalidate_table` clears one table from both tiers.
  - L2 keys have the form `blueprint:{table}:{METHOD}:{hash}`. See
    `build_cache_key`, `extract_table_name` and `hash_string`.
- `crudblueprint.database`: `DatabaseManager.register_databases` reads the
  `DB_*` settings and returns a list of `DbConfig` values.
  - It always returns one entry named `default`.
  - It adds one entry named `analytics` when `DB_ANALYTICS_HOST` is set.
  - `registered_names` lists the names of the registered databases.
  - `warm_pools(clients)` runs `SELECT 1` on each registered client and
    reports which ones answered.
- `crudblueprint.health`: `check(clients, names)` is a coroutine that returns
  a `Response`.
  - The body holds the status and latency of each named database.
  - The status code is 200 when every database is healthy and 503 otherwise.
  - A client must offer `has_available_connections()` and
    `async execute(sql)`.
- `crudblueprint.cors`: `CorsFilter.filter(request)` handles cross-origin
  requests.
  - It answers an `OPTIONS` preflight with 204.
  - It refuses an origin that is not allowed with 403.
  - It records an allowed origin in `request.attributes["cors_origin"]`.
  - The helpers `allowed_origins` and `is_origin_allowed` decide which
    origins are allowed.
- `crudblueprint.jwt_auth`: `JwtFilter.filter(request)` checks the request's
  bearer token.
  - The token must be an HS256 token signed with `JWT_SECRET`, and its
    issuer must be the value of `crudblueprint.jwt_auth.ISSUER`.
  - The string claims `user_id` and `role` are copied into
    `request.attributes`.
  - The paths in `SKIP_PATHS` need no token: `/health`,
    `/api/v1/auth/login` and `/api/v1/auth/register`.
  - A failed check returns a 401 response.
- `crudblueprint.rate_limit`: `RateLimitFilter` keeps a sliding window of
  requests for each client IP.
  - The client IP is taken from the first entry of `X-Forwarded-For`, or
    from `Request.peer_addr` when that header is absent.
  - A client over the limit gets a 429 response with a `Retry-After`
    header.
  - `tracked_clients()` reports how many client IPs are being tracked.
  - Clients that have made no requests for a while are purged every five
    minutes.

Each filter returns a `Response` when it ends the request, and `None` to let
the request through.

## Configuration

A `.env` file holds `KEY=VALUE` lines. The loader reads them as follows:

- Blank lines and lines that start with `#` are skipped.
- A value may be wrapped in single or double quotes.
- ` #` inside a value starts a comment.
- A variable that is already set in the environment wins over the file.
- `load` reads a file only the first time it is called. A missing file is
  logged and then ignored.

```python
from crudblueprint.config import EnvConfig

config = EnvConfig()          # or EnvConfig({"PORT": "8080"}) for a private mapping
config.load(".env")

port = config.get_int("PORT", 8080)
origins = config.get_list("CORS_ORIGINS")
engine = config.db_rdbms()    # "postgres"/"pg" -> "postgresql", "mariadb" -> "mysql", "sqlite" -> "sqlite3"
```

These settings are read:

| Key | Default |
| --- | --- |
| `DB_ENGINE` | `postgresql` |
| `DB_HOST` | `localhost` |
| `DB_PORT` | 5432 for PostgreSQL, 3306 for MySQL, 0 otherwise |
| `DB_NAME` | `mydb` |
| `DB_USER` | `postgres` |
| `DB_POOL_SIZE` | `5` |
| `DB_FAST_MODE` | `true` |
| `DB_TIMEOUT` | `30.0` |
| `DB_ANALYTICS_HOST` | empty (no analytics database) |
| `REDIS_HOST` | empty (no L2 cache) |
| `REDIS_PORT` | `6379` |
| `REDIS_DB` | `0` |
| `CORS_ORIGINS` | empty (any origin is allowed when `ENVIRONMENT` is `development`, its default) |
| `JWT_SECRET` | empty (every request that needs a token is refused) |
| `RATE_LIMIT_MAX` | `100` requests |
| `RATE_LIMIT_WINDOW` | `60` seconds |

## Caching

```python
from crudblueprint.lru import LruCache

cache = LruCache(1000, 60)
cache.put("GET:/api/v1/users:", {"data": []})
cache.get("GET:/api/v1/users:")              # {"data": []}
cache.invalidate_by_prefix("GET:/api/v1/users")
len(cache)                                   # 0
```

`LruCache`, `ResponseCache` and `RateLimitFilter` accept a `clock` argument.
It is a function that returns seconds and defaults to `time.monotonic`.

```python
from crudblueprint.cache_manager import CacheManager
from crudblueprint.responses import Request

manager = CacheManager()      # L1 only; pass l2=RedisCache(...) to add Redis
request = Request("GET", "/api/v1/users", "limit=10")

await manager.put(request, {"data": []}, 120)
await manager.get(request)    # {"data": []}
await manager.invalidate_table("users")
```

## Responses

Error bodies always have this shape:

```json
{"error": {"message": "Validation failed", "status": 422, "details": []}}
```

`details` is included only when it is given. A body from `paginated`
carries `data` and a `meta` object with the fields `total`, `limit`,
`offset` and `has_more`.

## What this package does not do

This package is a library, not a running service. It has none of the
following:

- an HTTP server, routing, or request handlers for the CRUD endpoints;
- schema discovery, query building or database drivers;
- a command-line entry point.

`DatabaseManager` describes database connections but opens none.
`database.warm_pools` and `health.check` work only with client objects that
you supply.

## Tests

Install the `test` extra, then run `pytest` from the project root.