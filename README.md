# airkit

Building blocks for network services: an immutable request context,
configuration loading, application settings, a distributed lock, a
read-through cache, rate limiters and request/response types for HTTP
clients.

## Install

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `airkit.reqcontext`: `Context`, an immutable bag of values.
  `Context.with_value(key, value)` returns a new context, and
  `Context.value(key)` returns the stored value or None. `background()`
  returns the empty root context. Helpers store and read well-known values:
  `with_log_id` / `value_log_id` and `with_trace_id` / `value_trace_id`
  return `""` when the value is absent or is not a string.
  `with_log_container` / `value_log_container` and `with_response_writer` /
  `value_response_writer` return None when absent.
- `airkit.config`: `Config(path)` is a directory of configuration files.
  `Config.read_config(file, typ)` reads `<file>.<typ>` or `<file>` and
  returns a dict whose keys are lower-cased. The types are `json`, `toml`,
  `yaml`, `yml` and `ini`. `init_config(path)` sets the default directory.
  `read_config`, `config_path`, `config_dir` and `current_config` use that
  default.
- `airkit.app`: `init_app()` reads `app.toml` from the default configuration
  directory into an `AppSettings` and detects the local IP address. The
  accessors are `name()`, `registry_name()`, `local_ip()`, `port()`,
  `pprof()` and `debug()`. The timeouts are `context_timeout()`,
  `connect_timeout()`, `write_timeout()` and `read_timeout()`. Each is a
  `timedelta` built from milliseconds, and each is one second when unset.
- `airkit.confparse`: `extract_conf(namespace, content)` decodes content by
  the namespace's extension. `.json` is JSON, `.txt` is TOML, `.yaml` and
  `.yml` are YAML, and `.xml` is XML (through xmltodict). Any other extension
  raises `ValueError`, and so does a missing one.
- `airkit.lock`: the `Locker` interface (`lock`, `unlock`) and its errors
  `ClientNilError` and `UnlockError`.
- `airkit.redis_lock`: `RedisLock(client)` takes a lock with `SET NX` and a
  millisecond expiry. Between tries it waits out the holder's TTL. It
  releases the lock with a compare-and-delete Lua script.
- `airkit.cache`: `CacheData` holds a record with a virtual expiry and a
  JSON payload (`to_json`, `from_json`). The module also has the `Cacher`
  interface, and `handle_load(loader)`, which turns any failure of the
  loader into `LoadError`.
- `airkit.redis_cache`: `RedisCache(client, locker)` is a read-through cache.
  `get_data` loads and stores data when the key is absent. Past the virtual
  expiry it returns the stored value while a background thread reloads it.
  `flush_cache` loads under the lock `LOCK::<key>` and stores the result. It
  returns None when that lock cannot be taken.
- `airkit.struct_listener`: `StructChangeListener` keeps the decoded
  `content` of each configured namespace. It can apply an optional factory
  per namespace. `init_config(client)` loads every namespace and raises
  `ConfigInitError` on failure. `on_change(event)` re-decodes a namespace
  that has already been loaded. The event types are `ChangeEvent`,
  `ConfigChange` and `FullChangeEvent`.
- `airkit.limiter`: `Resource(name, limit, burst, window)`, `Entry` (fields
  `allowed` and `error`, method `finish()`) and the `Limiter` interface
  (`check`, `set_limit`, `set_burst`, `set_window`).
- In-process limiters:
  - `airkit.leaky_bucket`: `LeakyBucket` and `LeakyBucketLimiter`. The
    resource's `limit` is the rate and its `burst` is the volume.
  - `airkit.sliding_window`: `SlidingWindow` and `SlidingWindowLimiter`.
    The resource allows `limit` requests per `burst` milliseconds; see
    `burst_to_window`.
  - `airkit.token_bucket`: `TokenBucket` and `TokenBucketLimiter`, which
    refill `limit` tokens per second up to a capacity of `burst`.
- Limiters that keep their state in Redis:
  - `airkit.redis_leaky_bucket`: `RedisLeakyBucket` and
    `RedisLeakyBucketLimiter`, which run a Lua script over a Redis hash.
  - `airkit.redis_sliding_log`: `RedisSlidingLog` and
    `RedisSlidingLogLimiter`, which keep a sorted set of request times.

  Both limiters report a Redis failure as a rejecting `Entry` whose `error`
  holds the exception.
- `airkit.codec`: the `Codec` interface and `JsonCodec`, which writes
  compact UTF-8 JSON.
- `airkit.http_request`: `DefaultRequest` and `MultiRequest`.
  `MultiRequest` builds a multipart/form-data body from `values` and
  `files` (`MultiFormFile`) and sets the `Content-Type` header. The module
  also has the `Request` protocol and the abstract `Client`.
- `airkit.http_response`: `Response` and `DataResponse`. `DataResponse`
  reads a whole body and decodes it with its codec when `body` is set.

Every Redis-backed class takes a client object you supply. It calls that
object with method names as in redis-py: `set`, `get`, `pttl`, `eval`,
`zremrangebyscore`, `zcount` and `zadd`. The package does not depend on a
Redis library itself.

## Examples

```python
from airkit.limiter import Resource
from airkit.token_bucket import TokenBucketLimiter

limiter = TokenBucketLimiter()
resource = Resource(name="search", limit=10, burst=20)

entry = limiter.check(resource)
if entry.allowed:
    ...  # handle the request
    entry.finish()
```

```python
from airkit.confparse import extract_conf

conf = extract_conf("service.yaml", "timeout: 3\nretries: 2\n")
assert conf == {"timeout": 3, "retries": 2}
```

```python
from airkit import reqcontext

ctx = reqcontext.with_log_id(reqcontext.background(), "req-1")
assert reqcontext.value_log_id(ctx) == "req-1"
```

## What it does not do

- There is no HTTP transport. `Client` is an interface only. Nothing here
  opens connections, resolves service names or sends requests.
- There is no server, no command-line program and no service registry.
- The Redis-backed classes need a running Redis server reached through a
  client object you provide. The package ships no client and no connection
  setup.