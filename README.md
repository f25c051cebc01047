# bdindexer

Row types and a validator store for a blockchain indexer, plus a small HTTP
worker that answers chain queries ("actions") on demand.

## Contents

- `bdindexer.dbtypes.coins`: `Coin` and `DecCoin` values and their database
  form. `DbCoin`, `DbCoins`, `DbDecCoin` and `DbDecCoins` use the composite
  text format `(denom,amount)`. They parse it with `parse()` and convert back
  with `to_coin()`, `to_coins()`, `to_dec_coin()` and `to_dec_coins()`.
  `format_dec` renders decimals with 18 fractional digits.
- `bdindexer.dbtypes.rows`, `bdindexer.dbtypes.staking`,
  `bdindexer.dbtypes.gov`: dataclasses for the rows of the indexer tables.
  These cover accounts, modules, supply, community pool, mint, staking,
  slashing, consensus, price feeds, validators and governance.
- `bdindexer.database.store.Database`: an SQLite store, usable as a context
  manager, for:
  - validator data;
  - descriptions;
  - commissions;
  - voting powers;
  - statuses;
  - double-sign evidence;
  - the list of enabled modules.

  An update only replaces a stored row when it comes with an equal or greater
  height. Errors are raised as `DatabaseError`.
- `bdindexer.database.batching.split_accounts`: splits a list into batches
  whose statement parameters fit within 65535.
- `bdindexer.actions`:
  - `ActionsWorker` maps request paths to handlers and records per-path
    counts and response times in `ActionMetrics`.
  - `register_handlers` registers the twelve built-in handlers, for example
    `/account_balance`, `/delegation_total` and `/redelegation`.
  - `run_actions` serves them until SIGTERM or SIGINT.
  - `parse_config` reads the `actions` section of a YAML configuration.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Storing validators

```python
from bdindexer.database.store import Database
from bdindexer.dbtypes.staking import ValidatorData

with Database(":memory:") as db:
    db.save_validator_data(
        ValidatorData(
            consensus_address="valcons1example",
            operator_address="valoper1example",
            consensus_pubkey="valconspub1example",
            self_delegate_address="acc1example",
            max_rate="1",
            max_change_rate="2",
            height=1,
        )
    )
    validator = db.get_validator("valoper1example")
    print(validator.consensus_address)
```

Rates are stored as integers and written to the table with 18 fractional
digits. `get_validator_consensus_address` and
`get_validator_operator_address` also check that the stored address is valid
bech32. The expected prefixes are `Database.consensus_prefix` and
`Database.operator_prefix`.

## Serving actions

The handlers read from three sources that you provide:

- a `BankSource`;
- a `DistributionSource`;
- a `StakingSource`.

These are protocols in `bdindexer.actions.sources`; bundle them in `Sources`.

```python
from bdindexer.actions.server import register_handlers, run_actions
from bdindexer.actions.types import Context
from bdindexer.actions.worker import ActionsWorker

context = Context(node=my_node, sources=my_sources)  # node has latest_height()
worker = ActionsWorker(context)
register_handlers(worker)

status, content_type, body = worker.dispatch(
    "/account_balance", b'{"input": {"address": "acc1example"}}'
)
run_actions(worker, 3000)  # blocks until SIGTERM or SIGINT
```

If the payload gives no height, the handler uses the node's latest height.
A handler failure is answered with status 400 and a JSON body of the form
`{"message": ...}`.

## What it does not do

- There is no command-line program. You build the worker and call it from
  your own code.
- The package holds no chain client. The node and the bank, distribution and
  staking sources must be supplied by the caller.
- The database covers only validators and enabled modules. The other row
  types are plain dataclasses with no store behind them.
- Metrics are kept in memory. They are read through `ActionMetrics` and are
  not exposed over HTTP.