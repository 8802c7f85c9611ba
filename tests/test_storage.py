import asyncio
import json
import random

import pytest

from server.errors import PersistenceError
from server.records import Record, RecordStatus, RecordStore
from server.save_queue import SaveSerializer
from server.storage import RecordFile


def _record(order_id, status=RecordStatus.ACTIVE, quantity=1):
    return Record(
        order_id=order_id,
        customer_name=f"Customer {order_id}",
        product_name="QR Test Shirt",
        quantity=quantity,
        code_url=f"https://pickup.example.com/qrcodes/{order_id}.png",
        status=status,
    )


@pytest.mark.asyncio
async def test_round_trip_ignores_insertion_order(tmp_path):
    records = [_record(str(i), quantity=i + 1) for i in range(20)]
    records[3].status = RecordStatus.USED
    shuffled = records[:]
    random.Random(7).shuffle(shuffled)

    rf = RecordFile(str(tmp_path / "qrcodes.json"))
    await rf.write_all(shuffled)
    loaded = await rf.read_all()

    by_id = {r.order_id: r for r in loaded}
    assert len(loaded) == 20
    assert by_id == {r.order_id: r for r in records}
    assert by_id["3"].status is RecordStatus.USED


@pytest.mark.asyncio
async def test_saving_twice_produces_identical_file(tmp_path):
    path = tmp_path / "qrcodes.json"
    rf = RecordFile(str(path))
    store = RecordStore([_record("A1"), _record("A2")])

    await rf.write_all(store.all())
    first = path.read_bytes()
    await rf.write_all(store.all())
    assert path.read_bytes() == first


@pytest.mark.asyncio
async def test_file_format_is_a_json_array(tmp_path):
    path = tmp_path / "qrcodes.json"
    await RecordFile(str(path)).write_all([_record("A1")])
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == [
        {
            "order_id": "A1",
            "product_name": "QR Test Shirt",
            "quantity": 1,
            "code_url": "https://pickup.example.com/qrcodes/A1.png",
            "customer_name": "Customer A1",
            "status": "active",
        }
    ]
    # no temp files are left behind
    assert [p.name for p in tmp_path.iterdir()] == ["qrcodes.json"]


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path):
    with pytest.raises(PersistenceError):
        await RecordFile(str(tmp_path / "nope.json")).read_all()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    ["{not json", '{"order_id": "A1"}', '[{"product_name": "x"}]', '[{"order_id": "A1", "status": "gone", "product_name": "x", "code_url": "u"}]'],
)
async def test_corrupt_file_raises(tmp_path, content):
    path = tmp_path / "qrcodes.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(PersistenceError):
        await RecordFile(str(path)).read_all()


@pytest.mark.asyncio
async def test_reads_legacy_qr_code_url_key(tmp_path):
    path = tmp_path / "qrcodes.json"
    path.write_text(
        json.dumps(
            [
                {
                    "order_id": 1001,
                    "customer_name": "Jane Doe",
                    "product_name": "QR Test Shirt",
                    "quantity": 2,
                    "status": "used",
                    "qr_code_url": "https://old.example.com/qrcodes/1001.png",
                }
            ]
        ),
        encoding="utf-8",
    )
    (record,) = await RecordFile(str(path)).read_all()
    assert record.order_id == "1001"
    assert record.code_url == "https://old.example.com/qrcodes/1001.png"
    assert record.status is RecordStatus.USED


def test_quarantine_moves_file_aside(tmp_path):
    path = tmp_path / "qrcodes.json"
    path.write_text("garbage", encoding="utf-8")
    rf = RecordFile(str(path))

    moved = rf.quarantine()

    assert moved == str(path) + ".corrupt"
    assert not path.exists()
    assert (tmp_path / "qrcodes.json.corrupt").read_text(encoding="utf-8") == "garbage"
    assert rf.quarantine() is None


@pytest.mark.asyncio
async def test_write_failure_raises_persistence_error(tmp_path):
    target = tmp_path / "qrcodes.json"
    target.mkdir()
    with pytest.raises(PersistenceError):
        await RecordFile(str(target)).write_all([_record("A1")])


@pytest.mark.asyncio
async def test_concurrent_mutations_all_reach_disk(tmp_path):
    path = tmp_path / "qrcodes.json"
    rf = RecordFile(str(path))
    store = RecordStore()
    saver = SaveSerializer(lambda: rf.write_all(store.all()))

    async def mutate(i):
        store.put(_record(f"K{i}"))
        await asyncio.sleep(random.random() / 100)
        await saver.request_save()

    await asyncio.gather(*(mutate(i) for i in range(25)))

    loaded = await rf.read_all()
    assert sorted(r.order_id for r in loaded) == sorted(f"K{i}" for i in range(25))
