# banktransfer

A library for keeping bank accounts and moving money between them. Balances
are held as whole cents (`banktransfer.domain.Money`) and shown as decimal
amounts in output data (`Money(19944).to_float() == 199.44`).

The package is built in layers that can be used separately:

| Module | What it holds |
| --- | --- |
| `banktransfer.domain` | `Account`, `Transfer`, `Money`, the domain errors and the `AccountRepository` / `TransferRepository` protocols; `new_uuid()` and `is_valid_uuid()` |
| `banktransfer.account_usecases` | `CreateAccountInteractor`, `FindAccountBalanceInteractor`, `FindAllAccountInteractor` and their input/output dataclasses |
| `banktransfer.transfer_usecases` | `CreateTransferInteractor`, `FindAllTransferInteractor` and their input/output dataclasses |
| `banktransfer.presenters` | Presenters that turn entities into output data, with RFC 3339 timestamps |
| `banktransfer.actions` | Request handlers taking a `werkzeug` `Request` and returning a JSON `Response`, plus `health_check` |
| `banktransfer.responses` | `ErrorResponse`, `SuccessResponse` and `encode_json` |
| `banktransfer.middleware` | `RequestLoggingMiddleware`, a WSGI middleware logging each request and response |
| `banktransfer.validation` | `FieldValidator`, checking `required`, `gt=N` and `uuid4` rules on dataclass fields |
| `banktransfer.logger` | `JsonLogger` and `KeyValueLogger`, structured loggers writing one JSON object per line |
| `banktransfer.sql_repository` | `AccountSQL` and `TransferSQL` on a relational database |
| `banktransfer.nosql_repository` | `AccountNoSQL` and `TransferNoSQL` on a document database |
| `banktransfer.sql_handler` | `SQLHandler` / `SQLTransaction` over a DB-API 2.0 connection, `connect_sql`, `new_sql_database` |
| `banktransfer.mongo_handler` | `MongoHandler` / `MongoSession` over a MongoDB client, `connect_mongodb`, `new_nosql_database` |
| `banktransfer.database_config` | `DatabaseConfig`, read from environment variables |

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Use cases

An interactor takes a repository, a presenter and a timeout in seconds:

```python
from banktransfer.account_usecases import CreateAccountInput, CreateAccountInteractor
from banktransfer.presenters import CreateAccountPresenter

interactor = CreateAccountInteractor(repository, CreateAccountPresenter(), 10.0)
output = interactor.execute(CreateAccountInput(name="Test", cpf="00000000000", balance=19944))
print(output.balance)  # 199.44
```

`repository` is anything with the methods of `banktransfer.domain.AccountRepository`,
such as `AccountSQL` or `AccountNoSQL`.

`CreateTransferInteractor` runs the whole transfer inside the transfer
repository's `with_transaction`: it looks up the origin account, withdraws the
amount, looks up the destination, deposits it, updates both balances and stores
the transfer. A missing origin or destination raises
`AccountOriginNotFoundError` or `AccountDestinationNotFoundError`; an origin
without enough funds raises `InsufficientBalanceError`.

## Request actions

Each action decodes a request, validates it, runs a use case and returns a
JSON response:

```python
import io

from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request

from banktransfer.actions import CreateAccountAction
from banktransfer.logger import JsonLogger
from banktransfer.validation import FieldValidator

action = CreateAccountAction(interactor, JsonLogger(io.StringIO()), FieldValidator())
environ = EnvironBuilder(
    method="POST",
    path="/accounts",
    json={"name": "Test", "cpf": "00000000000", "balance": 10050},
).get_environ()
response = action.execute(Request(environ))
print(response.status_code)  # 201
```

`FindAccountBalanceAction` reads the account id from the `account_id` query
parameter. Errors are returned as `{"errors": ["…"]}`:

* `400` for malformed JSON, failed validation, an invalid account id, or an
  unknown account when reading a balance;
* `422` when a transfer's origin lacks funds or either account does not exist;
* `500` for any other failure.

A transfer whose origin and destination are the same is refused with
`account origin equals destination account`.

## Storage

`DatabaseConfig.mongodb_from_env()` reads `MONGODB_HOST`, `MONGODB_DATABASE`,
`MONGODB_ROOT_USER` and `MONGODB_ROOT_PASSWORD`; `connect_mongodb` connects to
the replica set they describe and pings it.

`DatabaseConfig.postgres_from_env()` reads `POSTGRES_HOST`, `POSTGRES_PORT`,
`POSTGRES_DATABASE`, `POSTGRES_DRIVER`, `POSTGRES_USER` and
`POSTGRES_PASSWORD`. `connect_sql` knows only the `sqlite3` (or `sqlite`)
driver, opening the file named by the database setting; any other driver
raises `ValueError`. `SQLHandler` itself accepts a connect function for any
DB-API 2.0 module together with its parameter style, and rewrites the `$N`
placeholders the repositories use.

## What the package does not do

The package has no command to start it and no HTTP server or routing: it does
not map URLs to the actions or listen on a port. To serve the actions, wrap
them in a WSGI application of your own (optionally behind
`RequestLoggingMiddleware`) and run it with any WSGI server. It also creates
no database tables; the `accounts` and `transfers` tables must already exist.