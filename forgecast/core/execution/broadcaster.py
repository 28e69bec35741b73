"""
Transaction broadcaster.

Sends the transactions of a simulated script run to a live network:
- Matches every transaction to the unlocked wallet of its sender
- Keeps each sender's transactions strictly sequential
- Runs distinct senders concurrently, checking nonces for drift
- Appends receipts to the deployment record in declared order
"""

import asyncio
from collections import OrderedDict
from decimal import Decimal
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

import structlog
from eth_utils import to_checksum_address

from ...config import settings
from ..chain_types import chain_name, resolve_legacy
from ..wallet.signers import SigningIdentity
from .errors import (
    BroadcastFailedError,
    ChainMismatchError,
    NoSignerError,
    NonceDriftError,
    ReceiptMissingError,
    UnknownSenderError,
)
from .models import BroadcastSummary, PendingTransaction, SubmittedReceipt
from .sequence import DeploymentRecord, JsonFileSink, PersistenceSink
from .tx_builder import TransactionBuilder

if TYPE_CHECKING:
    from ...providers.base import NetworkClient


logger = structlog.stdlib.get_logger(__name__)

T = TypeVar("T")

Reporter = Callable[[str], None]
SignerQueue = Tuple[SigningIdentity, List[Tuple[int, PendingTransaction]]]

WEI_PER_ETH = Decimal(10) ** 18
WEI_PER_GWEI = Decimal(10) ** 9


def format_receipt(submitted: SubmittedReceipt) -> str:
    """Human-readable progress line for a recorded receipt."""
    receipt = submitted.receipt
    mark = "✅" if receipt.succeeded else "❌"
    lines = ["#####", f"{mark} Hash: {receipt.transaction_hash}"]
    if receipt.contract_address:
        lines.append(f"Contract Address: {receipt.contract_address}")
    paid = Decimal(receipt.fee_paid_wei) / WEI_PER_ETH
    gwei = Decimal(receipt.effective_gas_price) / WEI_PER_GWEI
    lines.append(f"Block: {receipt.block_number}")
    lines.append(f"Paid: {paid.normalize():f} ETH ({receipt.gas_used} gas * {gwei.normalize():f} gwei)")
    lines.append(f"Nonce: {submitted.nonce}")
    if not receipt.succeeded:
        lines.append("Status: Failed (reverted)")
    return "\n".join(lines)


class _ReceiptCollector:
    """
    Appends receipts to the record in declared order.

    A receipt is held back until every earlier transaction has been
    recorded, then appended, persisted and reported.
    """

    def __init__(self, record: DeploymentRecord, sink: PersistenceSink, reporter: Reporter):
        self._record = record
        self._sink = sink
        self._reporter = reporter
        self._next_index = len(record.receipts)
        self._completed: Dict[int, SubmittedReceipt] = {}
        self.recorded: List[SubmittedReceipt] = []

    def add(self, index: int, submitted: SubmittedReceipt) -> None:
        self._completed[index] = submitted
        while self._next_index in self._completed:
            item = self._completed.pop(self._next_index)
            self._record.add_receipt(item.receipt)
            self._sink.save(self._record)
            self.recorded.append(item)
            logger.info(
                "receipt_recorded",
                index=self._next_index,
                nonce=item.nonce,
                tx_hash=item.receipt.transaction_hash,
                status=item.receipt.status,
            )
            self._reporter(format_receipt(item))
            self._next_index += 1

    @property
    def unrecorded(self) -> List[Tuple[int, SubmittedReceipt]]:
        """Mined receipts that sit behind a gap left by a failed transaction."""
        return sorted(self._completed.items())


class Broadcaster:
    """
    Broadcasts a deployment record with a set of unlocked wallets.

    Every failure is fatal for the run. Receipts recorded before the failure
    stay in the record, so calling ``broadcast`` again with the same record
    resumes from the first unreceipted transaction.
    """

    def __init__(
        self,
        client: "NetworkClient",
        sink: Optional[PersistenceSink] = None,
        legacy: Optional[bool] = None,
        receipt_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        reporter: Reporter = print,
    ):
        self.client = client
        self.sink = sink or JsonFileSink()
        self.legacy = settings.legacy if legacy is None else legacy
        self.receipt_timeout = receipt_timeout or settings.receipt_timeout_seconds
        self.poll_interval = poll_interval or settings.receipt_poll_interval_seconds
        self.reporter = reporter

    async def broadcast(
        self,
        record: DeploymentRecord,
        identities: Iterable[SigningIdentity],
    ) -> BroadcastSummary:
        """
        Send every unreceipted transaction of ``record``.

        Args:
            record: Deployment record, mutated as receipts arrive
            identities: Unlocked wallets

        Returns:
            BroadcastSummary with totals and the record location

        Raises:
            BroadcastError: On the first fatal failure, after in-flight
                transactions have settled
        """
        identities = list(identities)
        if not identities:
            raise NoSignerError()

        chain_id = await self.client.get_chain_id()
        if record.chain_id is not None and record.chain_id != chain_id:
            raise ChainMismatchError(record.chain_id, chain_id)
        is_legacy = resolve_legacy(chain_id, self.legacy)
        signers: Dict[str, SigningIdentity] = OrderedDict(
            (identity.address, identity.with_chain_id(chain_id)) for identity in identities
        )
        record.chain_id = chain_id

        pending = record.pending()
        queues = self._assign_signers(pending, signers)
        # One signer is sequential by construction; several need drift checks
        check_nonces = len(signers) > 1

        structlog.contextvars.bind_contextvars(chain_id=chain_id)
        try:
            logger.info(
                "broadcast_started",
                chain=chain_name(chain_id),
                legacy=is_legacy,
                pending=len(pending),
                resumed=len(record.receipts),
                signers=len(signers),
            )

            collector = _ReceiptCollector(record, self.sink, self.reporter)
            abort = asyncio.Event()
            failures: List[Exception] = []

            await asyncio.gather(*(
                self._run_queue(
                    identity, items, collector, abort, failures,
                    chain_id=chain_id, is_legacy=is_legacy, check_nonce=check_nonces,
                )
                for identity, items in queues
            ))

            if failures:
                for index, item in collector.unrecorded:
                    logger.warning(
                        "receipt_not_recorded",
                        index=index,
                        nonce=item.nonce,
                        tx_hash=item.receipt.transaction_hash,
                    )
                logger.error(
                    "broadcast_aborted",
                    error=str(failures[0]),
                    recorded=len(record.receipts),
                    total=len(record.transactions),
                )
                raise failures[0]

            summary = BroadcastSummary(
                chain_id=chain_id,
                is_legacy=is_legacy,
                submitted=len(collector.recorded),
                total_receipts=len(record.receipts),
                failed_onchain=sum(1 for item in collector.recorded if not item.receipt.succeeded),
                total_fee_wei=sum(item.receipt.fee_paid_wei for item in collector.recorded),
                path=record.path,
            )
            logger.info(
                "broadcast_complete",
                submitted=summary.submitted,
                reverted=summary.failed_onchain,
                path=str(summary.path),
            )
        finally:
            structlog.contextvars.unbind_contextvars("chain_id")

        paid = Decimal(summary.total_fee_wei) / WEI_PER_ETH
        self.reporter("\n\n==========================")
        self.reporter(
            f"\nONCHAIN EXECUTION COMPLETE & SUCCESSFUL. "
            f"{summary.submitted} transaction(s) sent, {summary.total_receipts} receipt(s) total, "
            f"{paid.normalize():f} ETH paid."
        )
        self.reporter(f"Transaction receipts written to {summary.path}")
        return summary

    @staticmethod
    def _assign_signers(
        pending: List[Tuple[int, PendingTransaction]],
        signers: Dict[str, SigningIdentity],
    ) -> List[SignerQueue]:
        """Group pending transactions into per-signer queues, declared order kept."""
        queues: Dict[str, SignerQueue] = OrderedDict()
        for index, tx in pending:
            try:
                sender = to_checksum_address(tx.from_address)
            except ValueError:
                sender = tx.from_address
            identity = signers.get(sender)
            if identity is None:
                raise UnknownSenderError(tx.from_address, list(signers), tx_index=index)
            queues.setdefault(sender, (identity, []))[1].append((index, tx))
        return list(queues.values())

    async def _run_queue(
        self,
        identity: SigningIdentity,
        items: List[Tuple[int, PendingTransaction]],
        collector: _ReceiptCollector,
        abort: asyncio.Event,
        failures: List[Exception],
        chain_id: int,
        is_legacy: bool,
        check_nonce: bool,
    ) -> None:
        for index, tx in items:
            # Another signer failed; stop before the next submission
            if abort.is_set():
                return
            try:
                submitted = await self.send_transaction(
                    index, tx, identity,
                    chain_id=chain_id, is_legacy=is_legacy, check_nonce=check_nonce,
                )
                collector.add(index, submitted)
            except Exception as e:
                failures.append(e)
                abort.set()
                return

    async def send_transaction(
        self,
        index: int,
        tx: PendingTransaction,
        identity: SigningIdentity,
        chain_id: int,
        is_legacy: bool,
        check_nonce: bool,
    ) -> SubmittedReceipt:
        """Sign, send and await one transaction. Returns its receipt and nonce."""
        sender = identity.address

        nonce = tx.nonce
        if check_nonce or nonce is None:
            onchain_nonce = await self._network(
                self.client.get_transaction_count(sender),
                "Not able to query the EOA nonce", index, sender,
            )
            if nonce is None:
                nonce = onchain_nonce
            elif onchain_nonce != nonce:
                raise NonceDriftError(sender, nonce, onchain_nonce, tx_index=index)

        gas = tx.gas
        if gas is None:
            gas = await self._network(
                self.client.estimate_gas(TransactionBuilder.gas_estimation_call(tx)),
                "Gas estimation failed", index, sender, nonce,
            )

        gas_price = fees = None
        if TransactionBuilder.needs_network_fees(tx, is_legacy):
            if is_legacy:
                gas_price = await self._network(
                    self.client.get_gas_price(), "Not able to query gas price", index, sender, nonce,
                )
            else:
                fees = await self._network(
                    self.client.get_fee_estimate(), "Not able to query fees", index, sender, nonce,
                )

        try:
            payload = TransactionBuilder.build_for_signing(
                tx, chain_id, nonce, gas, is_legacy, gas_price=gas_price, fees=fees,
            )
            raw_tx = identity.sign_transaction(payload)
        except Exception as e:
            raise BroadcastFailedError(
                f"Could not sign transaction: {e}", sender=sender, tx_index=index, nonce=nonce,
            ) from e

        logger.debug("sending_transaction", index=index, sender=sender, tx=payload)
        tx_hash = await self._network(
            self.client.send_raw_transaction(raw_tx), "Send rejected", index, sender, nonce,
        )
        logger.info("transaction_submitted", index=index, sender=sender, nonce=nonce, tx_hash=tx_hash)

        try:
            receipt = await self.client.wait_for_receipt(
                tx_hash, timeout=self.receipt_timeout, poll_interval=self.poll_interval,
            )
        except Exception as e:
            logger.warning("receipt_poll_failed", tx_hash=tx_hash, error=str(e))
            receipt = None

        if receipt is None:
            raise ReceiptMissingError(
                tx_hash,
                known_to_node=await self._is_known(tx_hash),
                sender=sender,
                tx_index=index,
                nonce=nonce,
            )

        return SubmittedReceipt(receipt=receipt, nonce=nonce)

    async def _network(
        self,
        call: Awaitable[T],
        reason: str,
        index: int,
        sender: str,
        nonce: Optional[int] = None,
    ) -> T:
        """Await a node call, turning transport failures into BroadcastFailedError."""
        try:
            return await call
        except Exception as e:
            raise BroadcastFailedError(f"{reason}: {e}", sender=sender, tx_index=index, nonce=nonce) from e

    async def _is_known(self, tx_hash: str) -> bool:
        """Whether the node still knows a transaction we got no receipt for."""
        try:
            return await self.client.get_transaction(tx_hash) is not None
        except Exception as e:
            logger.warning("transaction_lookup_failed", tx_hash=tx_hash, error=str(e))
            return False
