import os
import time

import httpx

from canva_bridge.config import settings


def main() -> int:
    base_url = os.getenv("SMOKE_API_BASE_URL", f"http://127.0.0.1:{settings.port}")
    prompt = os.getenv("SMOKE_PROMPT", "sunset over the sea")
    deadline_sec = int(os.getenv("SMOKE_TIMEOUT_SEC", str(int(settings.job_delay_sec) + 15)))

    with httpx.Client(base_url=base_url, timeout=10) as client:
        before = client.get("/api/credits").json()["credits"]
        print(f"[INFO] credits before: {before}", flush=True)
        if before <= 0:
            before = client.post("/api/purchase-credits").json()["credits"]
            print(f"[INFO] purchased bundle, credits now: {before}", flush=True)

        queued = client.get("/api/queue-image-generation", params={"prompt": prompt})
        if queued.status_code != 200:
            print(f"[FAIL] queue failed: {queued.status_code} {queued.text}")
            return 1
        job_id = queued.json()["jobId"]
        print(f"[INFO] job queued: {job_id}", flush=True)

        deadline = time.time() + deadline_sec
        data = None
        while time.time() < deadline:
            rs = client.get("/api/job-status", params={"jobId": job_id})
            if rs.status_code != 200:
                print(f"[FAIL] status query failed: {rs.status_code} {rs.text}")
                return 1
            data = rs.json()
            if data["status"] != "processing":
                break
            time.sleep(1)

        if not data or data["status"] != "completed":
            print(f"[FAIL] job did not complete: {data}")
            return 1

        labels = {img.get("label") for img in data["images"]}
        if labels != {prompt}:
            print(f"[FAIL] unexpected labels: {labels}")
            return 1
        if data["credits"] != before - 1:
            print(f"[FAIL] credits not charged: before={before} after={data['credits']}")
            return 1

        cancel_id = client.get("/api/queue-image-generation", params={"prompt": prompt}).json()["jobId"]
        cancel = client.post("/api/job-status/cancel", params={"jobId": cancel_id})
        if cancel.status_code != 200:
            print(f"[FAIL] cancel failed: {cancel.status_code} {cancel.text}")
            return 1
        print(f"[INFO] job cancelled: {cancel_id}", flush=True)

    print(f"[DONE] job flow smoke passed: images={len(data['images'])} credits={data['credits']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
